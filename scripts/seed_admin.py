"""Grant admin rights to an existing user: python scripts/seed_admin.py reader@example.com"""
import argparse
import logging

from database import db, ensure_indexes
from services.admin import provision_admin

logging.basicConfig(level=logging.INFO)

parser = argparse.ArgumentParser(description="Provision a Bookshelf admin out of band")
parser.add_argument("email", help="email of a registered user")
args = parser.parse_args()

ensure_indexes(db)
print(provision_admin(db, args.email))
