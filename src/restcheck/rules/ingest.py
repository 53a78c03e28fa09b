from restcheck.core._types import Severity
from restcheck.core.rule import Rule

ING_001 = Rule(
    "ING-001",
    Severity.ERROR,
    "Captured exchange rejected at ingestion",
    hint="Each record needs a standard method, a path and a status in 100-599",
    layer="ingest",
)
