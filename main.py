"""
Hydra Consensus Server

Multi-provider AI valuation with weighted consensus, category routing
and ground-truth benchmark scoring.

Run:
    python main.py
    uvicorn main:app --host 127.0.0.1 --port 8000
"""

import logging

import httpx
import uvicorn

from benchmarks.recorder import BenchmarkRecorder
from benchmarks.store import BenchmarkStore
from config.settings import HOST, PORT, DEBUG, BENCHMARKS
from pipeline.orchestrator import AnalysisPipeline
from providers.clients import build_providers
from services.app_factory import create_app
from services.app_state import AppState
from services.reference_sources import build_reference_sources

# ============================================================
# LOGGING SETUP
# ============================================================
logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_state() -> AppState:
    """Wire providers, reference sources and the benchmark recorder"""
    http_client = httpx.AsyncClient(timeout=10.0, limits=httpx.Limits(max_connections=20))

    store = BenchmarkStore(BENCHMARKS.db_path) if BENCHMARKS.enabled else None
    recorder = BenchmarkRecorder(store) if store is not None else None

    pipeline = AnalysisPipeline(
        providers=build_providers(),
        reference_sources=build_reference_sources(http_client),
        recorder=recorder,
    )
    return AppState(
        debug_mode=DEBUG,
        pipeline=pipeline,
        recorder=recorder,
        store=store,
        http_client=http_client,
    )


app = create_app(build_state())


# ============================================================
# RUN SERVER
# ============================================================
if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Hydra Consensus Server")
    print("=" * 60)
    print(f"API: http://{HOST}:{PORT}/docs")
    print("=" * 60 + "\n")

    uvicorn.run(
        "main:app",
        host=HOST,
        port=PORT,
        reload=False,
        workers=1
    )
