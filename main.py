import os
import sys
import uuid
from loguru import logger
from dotenv import load_dotenv
from prometheus_client import REGISTRY, write_to_textfile
from fetcher import SERVICE_NAME, PER_PAGE, FetchError, fetch_all_users
from reports import generate_test_users_report, generate_domain_count_report

# Chargement des variables d'environnement
load_dotenv()

# URL de l'API (GoRest par défaut)
USERS_API_URL = os.getenv("USERS_API_URL", "https://gorest.co.in/public/v2/users")
USERS_PER_PAGE = int(os.getenv("USERS_PER_PAGE", PER_PAGE))
LOG_FILE = os.getenv("LOG_FILE", "logs.json")
# Export Prometheus au format textfile (node_exporter), désactivé si vide
METRICS_FILE = os.getenv("METRICS_FILE", "")


def configure_logging():
    # Config logging JSON; stdout reste réservé aux rapports CSV
    logger.remove()  # Supprime le handler par défaut
    logger.add(
        sink=LOG_FILE,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
        level="INFO",
        serialize=True,  # Format JSON
        rotation="1 day",  # Rotation quotidienne
    )
    logger.add(sink=sys.stderr, level="WARNING")


def run(base_url: str = USERS_API_URL, per_page: int = USERS_PER_PAGE, out=None):
    """Récupère tous les utilisateurs puis imprime les deux rapports."""
    out = out if out is not None else sys.stdout
    trace_id = str(uuid.uuid4())

    with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
        logger.info(f"Fetching users from {base_url}", extra={"per_page": per_page})
        # Une erreur ici interrompt tout: aucun rapport n'est imprimé
        all_users = fetch_all_users(base_url, per_page, trace_id=trace_id)

        print("=== Question 1: Active users with .test emails ===", file=out)
        generate_test_users_report(all_users, out)

        print("\n=== Question 2: Email domain suffix counts ===", file=out)
        generate_domain_count_report(all_users, out)
        logger.info("Reports generated", extra={"users": len(all_users)})


def main():
    configure_logging()
    try:
        run()
    except FetchError as e:
        logger.bind(status=e.status_code).error(f"Aborting run: {e.detail}")
        sys.exit(1)
    finally:
        if METRICS_FILE:
            write_to_textfile(METRICS_FILE, REGISTRY)
            logger.info(f"Metrics written to {METRICS_FILE}")


if __name__ == "__main__":
    main()
