# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

from alloc_cleaner.config.loader import CONFIG_ENV_VAR
from alloc_cleaner.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging_state(monkeypatch):
    # handler は生成時の sys.stdout を掴むため、テスト毎に作り直す
    reset_logging()
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
output_directory: ./out
entity_files:
  clients: clients.csv
  workers: workers.csv
  tasks: tasks.csv
cross_reference: true
null_sentinels: ["N/A"]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "cleaner.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


CLEAN_CLIENTS_CSV = """ClientID,ClientName,PriorityLevel,RequestedTaskIDs,GroupTag,AttributesJSON
C1,Acme,3,"T1,T2",GroupA,"{""location"":""Tokyo""}"
C2,Globex,5,T2,GroupB,
"""

CLEAN_WORKERS_CSV = """WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase,WorkerGroup,QualificationLevel
W1,Alice,"python,sql","[1,2,3]",2,GroupA,3
W2,Bob,design,"[2,4]",1,GroupB,2
"""

CLEAN_TASKS_CSV = """TaskID,TaskName,Category,Duration,RequiredSkills,PreferredPhases,MaxConcurrent
T1,Ingest,ETL,2,python,1-3,2
T2,Report,Analytics,1,sql,"[2,4,5]",1
"""


@pytest.fixture()
def clean_data_files(temp_workdir: Path) -> dict[str, Path]:
    """Valid clients / workers / tasks CSVs under ./data."""
    data_dir = temp_workdir / "data"
    files = {
        "clients": data_dir / "clients.csv",
        "workers": data_dir / "workers.csv",
        "tasks": data_dir / "tasks.csv",
    }
    files["clients"].write_text(CLEAN_CLIENTS_CSV, encoding="utf-8")
    files["workers"].write_text(CLEAN_WORKERS_CSV, encoding="utf-8")
    files["tasks"].write_text(CLEAN_TASKS_CSV, encoding="utf-8")
    return files


@pytest.fixture()
def valid_client() -> dict:
    return {
        "ClientID": "C1",
        "ClientName": "Acme",
        "PriorityLevel": 3,
        "RequestedTaskIDs": "T1,T2",
        "GroupTag": "GroupA",
        "AttributesJSON": '{"location": "Tokyo"}',
    }


@pytest.fixture()
def valid_worker() -> dict:
    return {
        "WorkerID": "W1",
        "WorkerName": "Alice",
        "Skills": "python,sql",
        "AvailableSlots": "[1,2,3]",
        "MaxLoadPerPhase": 2,
    }


@pytest.fixture()
def valid_task() -> dict:
    return {
        "TaskID": "T1",
        "TaskName": "Ingest",
        "Category": "ETL",
        "Duration": 2,
        "RequiredSkills": "python",
        "PreferredPhases": "1-3",
        "MaxConcurrent": 2,
    }
