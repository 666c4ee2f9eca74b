from .batcher import MulticallBatcher, Call3, MULTICALL3_ADDRESS
