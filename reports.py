import sys
from collections import Counter
from typing import Dict, Iterable, List, Optional, TextIO
from loguru import logger
from models import User

TEST_SUFFIX = ".test"


def select_test_users(users: Iterable[User]) -> List[User]:
    """Utilisateurs actifs dont l'email se termine par .test, dans l'ordre d'entrée."""
    return [
        u for u in users
        if u.status.lower() == "active" and u.email.lower().endswith(TEST_SUFFIX)
    ]


def email_suffix(email: str) -> Optional[str]:
    """
    Dernier segment du domaine ("a@b.example.test" -> "test").
    Retourne None pour un email mal formé.
    """
    email = email.lower()
    at_pos = email.rfind("@")
    if at_pos < 0 or at_pos == len(email) - 1:
        return None
    domain = email[at_pos + 1:]
    dot_pos = domain.rfind(".")
    if dot_pos < 0 or dot_pos == len(domain) - 1:
        return None
    return domain[dot_pos + 1:]


def count_domain_suffixes(users: Iterable[User]) -> Dict[str, int]:
    # Ordre de sortie = ordre de première apparition
    counts: Dict[str, int] = Counter()
    skipped = 0
    for u in users:
        suffix = email_suffix(u.email)
        if suffix is None:
            skipped += 1
            continue
        counts[suffix] += 1
    if skipped:
        logger.info(f"Skipped {skipped} malformed emails in domain count")
    return counts


def generate_test_users_report(users: Iterable[User], out: TextIO = None):
    out = out if out is not None else sys.stdout
    print("id,email", file=out)
    for u in select_test_users(users):
        print(f"{u.id},{u.email}", file=out)


def generate_domain_count_report(users: Iterable[User], out: TextIO = None):
    out = out if out is not None else sys.stdout
    print("Domain,count", file=out)
    for suffix, count in count_domain_suffixes(users).items():
        print(f"{suffix},{count}", file=out)
