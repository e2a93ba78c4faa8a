"""
Issue a session token for local development.

Creates the user if needed and prints a bearer token for it.
Run with: python -m scripts.issue_dev_token alice@example.com
"""

import argparse
import logging

from legate.database.mongo import get_database
from legate.entities.user import User
from legate.repositories.user import UserRepository
from legate.services.auth import create_access_token

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def issue_dev_token(email: str) -> str:
    repo = UserRepository(get_database())

    user = repo.find_by_email(email)
    if user is None:
        user = repo.insert_one(User(email=email.strip().lower()))
        logger.info(f"Created user {user.email} ({user.id})")
    else:
        logger.info(f"Found user {user.email} ({user.id})")

    return create_access_token(str(user.id))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email", help="Email of the user to sign in as")
    args = parser.parse_args()
    print(issue_dev_token(args.email))
