import time
from typing import List, Optional
import httpx  # Pour appels HTTP
from loguru import logger
from prometheus_client import Counter, Histogram
from models import User, parse_users_page

SERVICE_NAME = "users-report"
TARGET_SERVICE = "users-api"

# Maximum documenté par l'API, limite le nombre d'allers-retours
PER_PAGE = 100

# Prometheus metrics
EXTERNAL_CALL_COUNT = Counter(
    "external_service_calls_total",
    "Total external service calls",
    ["service", "target_service", "status"]
)
EXTERNAL_CALL_LATENCY = Histogram(
    "external_service_call_duration_seconds",
    "External service call latency in seconds",
    ["service", "target_service"]
)


class FetchError(Exception):
    """Échec de transport ou de protocole lors de la pagination (fatal)."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def fetch_page(client: httpx.Client, base_url: str, page: int, per_page: int, trace_id: str = None) -> List[User]:
    """Récupère une page d'utilisateurs"""
    start_time = time.time()
    headers = {"X-Trace-ID": trace_id} if trace_id else {}
    params = {"page": page, "per_page": per_page}

    try:
        resp = client.get(base_url, params=params, headers=headers)
    except httpx.RequestError as e:
        logger.bind(trace_id=trace_id).info(f"Error calling users API on page {page}: {str(e)}")
        EXTERNAL_CALL_COUNT.labels(
            service=SERVICE_NAME,
            target_service=TARGET_SERVICE,
            status="error"
        ).inc()
        raise FetchError(f"Failed to fetch data: {str(e)}") from e

    latency = time.time() - start_time
    EXTERNAL_CALL_COUNT.labels(
        service=SERVICE_NAME,
        target_service=TARGET_SERVICE,
        status="success" if resp.status_code == 200 else "error"
    ).inc()
    EXTERNAL_CALL_LATENCY.labels(
        service=SERVICE_NAME,
        target_service=TARGET_SERVICE
    ).observe(latency)

    if resp.status_code != 200:
        logger.info(f"Users API returned HTTP {resp.status_code} on page {page}", extra={"trace_id": trace_id})
        raise FetchError(f"Failed to fetch data: HTTP {resp.status_code}", status_code=resp.status_code)

    # Réponse illisible: même classe d'erreur fatale que le transport
    try:
        users = parse_users_page(resp.json())
    except ValueError as e:
        logger.bind(trace_id=trace_id).info(f"Invalid users payload on page {page}: {str(e)}")
        raise FetchError(f"Failed to parse data on page {page}: {str(e)}", status_code=resp.status_code) from e

    logger.info(f"Fetched page {page}: {len(users)} users", extra={"page": page, "count": len(users), "trace_id": trace_id})
    return users


def fetch_all_users(base_url: str, per_page: int = PER_PAGE, client: httpx.Client = None, trace_id: str = None) -> List[User]:
    """
    Parcourt l'API page par page jusqu'à recevoir une page vide.
    Aucune reprise: la première erreur interrompt la collecte.
    """
    owns_client = client is None
    if owns_client:
        client = httpx.Client()

    users: List[User] = []
    page = 1
    try:
        while True:
            page_users = fetch_page(client, base_url, page, per_page, trace_id)
            if not page_users:
                break  # plus de pages
            users.extend(page_users)
            page += 1
    finally:
        if owns_client:
            client.close()

    logger.info(f"Fetched {len(users)} users in {page} requests", extra={"trace_id": trace_id})
    return users
