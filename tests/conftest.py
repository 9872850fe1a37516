import pytest

from sigmatch.core.interfaces import ITableEngine
from sigmatch.engines import ArrowEngine, DuckDBEngine

H1 = "0x" + "11" * 32
H2 = "0x" + "22" * 32
S1 = "0x11111111"
S2 = "0x22222222"

ADDR_AA = "0x" + "aa" * 20
ADDR_BB = "0x" + "bb" * 20
ADDR_CC = "0x" + "cc" * 20
ADDR_DD = "0x" + "dd" * 20
ADDR_EE = "0x" + "ee" * 20

TOPIC_ARG = "0x" + "00" * 12 + "ab" * 20


@pytest.fixture(params=["arrow", "duckdb"])
def engine(request: pytest.FixtureRequest) -> ITableEngine:
    if request.param == "arrow":
        return ArrowEngine()
    return DuckDBEngine(threads=2, memory_limit="1GB")
