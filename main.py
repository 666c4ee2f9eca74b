"""
Liquidity Book Position Engine - CLI

Инструменты:
- Калькулятор цена <-> bin id (с учётом порядка токенов)
- Превью распределения ликвидности (spot / curve / bid-ask)
- Метрики позиции (APR, IL, эффективность капитала)
- Планирование свапа (price impact, minimum out)
- Позиции кошелька в LB паре (read-only, через RPC)
"""

import logging
import os

from dotenv import load_dotenv
from web3 import Web3

from config import (
    BASE_SEPOLIA,
    BIN_STEPS,
    DEFAULT_BIN_STEP,
    DEFAULT_DEADLINE_MINUTES,
    DEFAULT_SCAN_RADIUS,
    DEFAULT_SLIPPAGE,
    TOKENS_BASE_SEPOLIA,
    get_rpc_url,
    get_token,
)
from lb_engine.contracts.factory import LBFactory
from lb_engine.contracts.pair_reader import PairReader
from lb_engine.errors import LiquidityBookError
from lb_engine.math.bins import bin_id_to_price, needs_inversion, ui_price_to_bin_id
from lb_engine.math.distribution import (
    DistributionStrategy,
    LiquidityRange,
    plan_distribution,
    print_distribution,
    suggest_range,
)
from lb_engine.math.metrics import calculate_position_metrics
from lb_engine.math.quote import Quote, plan_quote
from lb_engine.prices import CoinGeckoPriceSource
from lb_engine.utils import from_raw_amount, to_raw_amount

load_dotenv()

logger = logging.getLogger(__name__)


def _input_float(prompt: str, default: float = None, positive: bool = True) -> float:
    """Ввод числа с повтором при ошибке."""
    while True:
        raw = input(prompt).strip()
        if not raw and default is not None:
            return default
        try:
            value = float(raw)
        except ValueError:
            print("Введите число")
            continue
        if positive and value <= 0:
            print("Значение должно быть > 0")
            continue
        return value


def _input_bin_step() -> int:
    print("Bin steps: " + ", ".join(f"{step} ({fee})" for step, fee in BIN_STEPS.items()))
    while True:
        raw = input(f"Bin step [{DEFAULT_BIN_STEP}]: ").strip()
        if not raw:
            return DEFAULT_BIN_STEP
        try:
            bin_step = int(raw)
        except ValueError:
            print("Введите целое число")
            continue
        if bin_step <= 0:
            print("Bin step должен быть > 0")
            continue
        return bin_step


def _input_token(prompt: str, default: str):
    symbols = "/".join(TOKENS_BASE_SEPOLIA)
    while True:
        symbol = input(f"{prompt} ({symbols}) [{default}]: ").strip() or default
        try:
            return get_token(symbol)
        except ValueError as e:
            print(e)


def bin_calculator():
    """Калькулятор цена <-> bin id."""
    print("\n" + "=" * 70)
    print("PRICE <-> BIN ID CALCULATOR")
    print("=" * 70)

    token_x = _input_token("Токен X", "WETH")
    token_y = _input_token("Токен Y", "USDC")
    if token_x.address.lower() == token_y.address.lower():
        print("Токены должны быть разными")
        return
    bin_step = _input_bin_step()

    price = _input_float(f"\nЦена (1 {token_x.symbol} = ? {token_y.symbol}): ")
    bin_id = ui_price_to_bin_id(price, bin_step, token_x.address, token_y.address)
    canonical = bin_id_to_price(bin_id, bin_step)
    inverted = needs_inversion(token_x.address, token_y.address)

    print(f"\nBin ID:          {bin_id}")
    print(f"Цена бина (пул): {canonical:.10g}")
    if inverted:
        print(f"Порядок токенов в пуле обратный: цена инвертирована "
              f"(1 {token_y.symbol} = {canonical:.10g} {token_x.symbol})")
    print(f"Соседние бины:   {bin_id - 1} -> {bin_id_to_price(bin_id - 1, bin_step):.10g}, "
          f"{bin_id + 1} -> {bin_id_to_price(bin_id + 1, bin_step):.10g}")


def distribution_preview():
    """Превью распределения по стратегии."""
    print("\n" + "=" * 70)
    print("LIQUIDITY DISTRIBUTION PREVIEW")
    print("=" * 70)

    current_price = _input_float("\nТекущая цена: ")

    print("\nСтратегия:")
    print("1. Spot (равномерно)")
    print("2. Curve (концентрация у текущей цены)")
    print("3. Bid-Ask (концентрация на краях)")
    strategies = {"1": DistributionStrategy.UNIFORM, "2": DistributionStrategy.CURVE, "3": DistributionStrategy.BID_ASK}
    strategy = strategies.get(input("Выбор (1-3) [1]: ").strip(), DistributionStrategy.UNIFORM)

    suggested = suggest_range(current_price, strategy)
    print(f"\nРекомендуемый диапазон: {suggested.min_price:.6g} - {suggested.max_price:.6g}")
    min_price = _input_float(f"Нижняя граница [{suggested.min_price:.6g}]: ", default=suggested.min_price)
    max_price = _input_float(f"Верхняя граница [{suggested.max_price:.6g}]: ", default=suggested.max_price)

    while True:
        num_bins = int(_input_float("Количество интервалов (1-100) [20]: ", default=20))
        if 1 <= num_bins <= 100:
            break
        print("От 1 до 100")

    bin_step = _input_bin_step()

    planned = plan_distribution(
        LiquidityRange(min_price, max_price), current_price, strategy, num_bins, bin_step=bin_step
    )
    if not planned:
        print("Некорректный диапазон: нижняя граница должна быть меньше верхней")
        return
    print_distribution(planned, current_price=current_price)


def metrics_calculator():
    """Метрики позиции."""
    print("\n" + "=" * 70)
    print("POSITION METRICS")
    print("=" * 70)

    amount_x = _input_float("\nКоличество WETH: ", positive=False)
    amount_y = _input_float("Количество USDC: ", positive=False)

    prices = CoinGeckoPriceSource()
    price_x = prices.get_usd_price("WETH")
    price_y = prices.get_usd_price("USDC")
    for symbol, snapshot in (("WETH", price_x), ("USDC", price_y)):
        note = " (fallback)" if snapshot.degraded else ""
        print(f"{symbol}: ${snapshot.value}{note}")

    current_price = _input_float("\nТекущая цена пула (USDC за WETH): ")
    min_price = _input_float("Нижняя граница диапазона: ")
    max_price = _input_float("Верхняя граница диапазона: ")
    if min_price >= max_price:
        print("Нижняя граница должна быть меньше верхней")
        return
    liquidity = _input_float("Ликвидность пула ($) [0]: ", default=0.0, positive=False)
    volume = _input_float("Объём за 24ч ($) [0]: ", default=0.0, positive=False)
    bin_step = _input_bin_step()

    metrics = calculate_position_metrics(
        amount_x=amount_x,
        amount_y=amount_y,
        price_x=price_x,
        price_y=price_y,
        pool_liquidity_usd=liquidity,
        pool_volume_24h_usd=volume,
        bin_step=bin_step,
        liquidity_range=LiquidityRange(min_price, max_price),
        current_price=current_price,
    )

    print(f"\nСтоимость позиции:   ${metrics.value_usd:,.2f}")
    print(f"Доля в пуле:         {metrics.pool_share_percent:.4f}%")
    print(f"Комиссия пула:       {metrics.fee_rate * 100:.2f}%")
    print(f"Комиссии день/мес/год: ${metrics.fees.daily:,.2f} / ${metrics.fees.monthly:,.2f} / ${metrics.fees.yearly:,.2f}")
    print(f"APR:                 {metrics.estimated_apr:.2f}%")
    print(f"Риск IL:             {metrics.impermanent_loss.percent}% ({metrics.impermanent_loss.level})")
    print(f"Эффективность:       {metrics.capital_efficiency}x")
    print(f"Концентрация:        {metrics.concentration_warning}")


def quote_planner():
    """Планирование свапа по суммам котировки."""
    print("\n" + "=" * 70)
    print("SWAP QUOTE PLANNER")
    print("=" * 70)

    token_out = _input_token("Выходной токен", "USDC")
    amount_out = _input_float(f"\nВыход по котировке ({token_out.symbol}): ")
    virtual_out = _input_float(f"Выход без проскальзывания ({token_out.symbol}): ")

    while True:
        slippage = _input_float(f"Slippage % [{DEFAULT_SLIPPAGE}]: ", default=DEFAULT_SLIPPAGE)
        quote = Quote(
            amounts=(to_raw_amount(amount_out, token_out.decimals),),
            virtual_amounts_without_slippage=(to_raw_amount(virtual_out, token_out.decimals),),
        )
        try:
            plan = plan_quote(
                quote,
                output_decimals=token_out.decimals,
                slippage_percent=slippage,
                deadline_seconds=DEFAULT_DEADLINE_MINUTES * 60,
            )
            break
        except LiquidityBookError as e:
            print(e)

    impact = plan.price_impact
    impact_text = f"{impact.percent:.2f}%" if impact.percent is not None else "n/a"
    print(f"\nВыход:            {plan.amount_out_human} {token_out.symbol}")
    print(f"Price impact:     {impact_text} ({impact.severity})")
    if impact.message:
        print(f"                  {impact.message}")
    print(f"Minimum out:      {plan.minimum_amount_out_human} {token_out.symbol} ({plan.minimum_amount_out} raw)")
    print(f"Slippage:         {plan.slippage_bips} bips")
    print(f"Deadline:         {plan.deadline}")


def wallet_positions():
    """Позиции кошелька в LB паре (только чтение)."""
    print("\n" + "=" * 70)
    print("WALLET POSITIONS")
    print("=" * 70)

    owner = os.getenv("WALLET_ADDRESS") or input("\nАдрес кошелька: ").strip()
    if not Web3.is_address(owner):
        print("Некорректный адрес")
        return

    token_a = _input_token("Токен A", "WETH")
    token_b = _input_token("Токен B", "USDC")
    bin_step = _input_bin_step()

    w3 = Web3(Web3.HTTPProvider(get_rpc_url(BASE_SEPOLIA.chain_id)))
    factory = LBFactory(w3, BASE_SEPOLIA.lb_factory)
    info = factory.get_pair_info(token_a.address, token_b.address, bin_step)
    if info is None:
        print("Пара не найдена")
        return

    tokens = {t.address.lower(): t for t in (token_a, token_b)}
    token_x = tokens[info.token_x.lower()]
    token_y = tokens[info.token_y.lower()]

    reader = PairReader(w3, info.address, BASE_SEPOLIA.multicall3)
    try:
        active_id = reader.get_active_id()
        summary = reader.get_user_positions(owner, radius=DEFAULT_SCAN_RADIUS, active_id=active_id)
    except LiquidityBookError as e:
        print(f"Ошибка чтения: {e}")
        return

    print(f"\nПара: {info.address}")
    print(f"Активный бин: {active_id} (цена {bin_id_to_price(active_id, bin_step):.10g})")
    if summary.skipped_bins:
        print(f"Пропущено бинов (ошибка чтения): {summary.skipped_bins}")
    if summary.is_empty:
        print("Позиций нет")
        return

    print(f"\n{'Bin ID':<10} {'Price':<16} {token_x.symbol:<22} {token_y.symbol:<22}")
    print("-" * 70)
    for position in summary.positions:
        print(
            f"{position.bin_id:<10} {position.price(bin_step):<16.8g} "
            f"{str(from_raw_amount(position.amount_x, token_x.decimals)):<22} "
            f"{str(from_raw_amount(position.amount_y, token_y.decimals)):<22}"
        )
    print("-" * 70)
    print(f"Итого: {from_raw_amount(summary.total_x, token_x.decimals)} {token_x.symbol}, "
          f"{from_raw_amount(summary.total_y, token_y.decimals)} {token_y.symbol} "
          f"в {summary.bin_count} бинах")


def main():
    """Главная функция."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(message)s"
    )

    print("""
 _     ____    ____           _ _   _
| |   | __ )  |  _ \\ ___  ___(_) |_(_) ___  _ __  ___
| |   |  _ \\  | |_) / _ \\/ __| | __| |/ _ \\| '_ \\/ __|
| |___| |_) | |  __/ (_) \\__ \\ | |_| | (_) | | | \\__ \\
|_____|____/  |_|   \\___/|___/_|\\__|_|\\___/|_| |_|___/

    Liquidity Book Position Engine
    """)

    print("Выбери действие:")
    print("1. Калькулятор цена <-> bin id")
    print("2. Превью распределения ликвидности")
    print("3. Метрики позиции")
    print("4. Планирование свапа")
    print("5. Позиции кошелька (RPC)")
    print("6. Выход")

    choice = input("\nВыбор (1-6): ").strip()

    if choice == "1":
        bin_calculator()
    elif choice == "2":
        distribution_preview()
    elif choice == "3":
        metrics_calculator()
    elif choice == "4":
        quote_planner()
    elif choice == "5":
        wallet_positions()
    elif choice == "6":
        print("Выход")
    else:
        print("Неверный выбор")


if __name__ == "__main__":
    main()
