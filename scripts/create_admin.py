#!/usr/bin/env python3
"""
Create an admin account for IssueDesk.

Idempotent - an existing account with the same email is promoted to admin
instead of being recreated.

Usage:
    python scripts/create_admin.py admin@example.com 'S3cret-pass' --name "Ops Team"
"""
import sys
import os
import argparse
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, db
from app.exceptions import InvalidInputError
from app.models import User
from app.services.auth import create_user


def create_admin(email: str, password: str, name: str = None):
    """Create or promote an admin. Returns (user, created)."""
    existing = User.query.filter_by(email=email.lower().strip()).first()
    if existing:
        existing.role = 'admin'
        existing.is_active = True
        db.session.commit()
        return existing, False

    return create_user(email, password, name=name, role='admin'), True


def main():
    parser = argparse.ArgumentParser(description='Create an IssueDesk admin account')
    parser.add_argument('email')
    parser.add_argument('password')
    parser.add_argument('--name', default=None)
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        try:
            user, created = create_admin(args.email, args.password, args.name)
        except InvalidInputError as e:
            print(f"Error: {e.message}")
            sys.exit(1)

    if created:
        print(f"Created admin #{user.id}: {user.email}")
    else:
        print(f"Promoted existing user #{user.id} to admin: {user.email}")


if __name__ == '__main__':
    main()
