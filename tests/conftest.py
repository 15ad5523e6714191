from tests.fixtures.fixtures import (  # noqa: F401
    clock,
    file_store,
    ledger,
    ledger_factory,
    memory_store,
    provider,
    telemetry,
)
