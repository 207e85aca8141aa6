"""
Maintenance commands.

    hiresphere-manage init-db
    hiresphere-manage create-admin --email admin@example.com --password 'S3cure!pass' --name Ada --surname Admin

Admins cannot self-register through the API, so the first one is created here.
"""
import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from . import database
from .config import configure_logging
from .enums import Role
from .models.user import User
from .utils.security import hash_password
from .utils.validation import is_password_complex


def init_db() -> None:
    database.init_db()
    print("✓ Database initialized successfully")


def create_admin(*, email: str, password: str, name: str, surname: str) -> int:
    if not is_password_complex(password):
        raise ValueError("Password does not meet complexity requirements")

    database.init_db()
    db = database.SessionLocal()
    try:
        normalized = email.strip().lower()
        if db.query(User).filter(User.email == normalized).first() is not None:
            raise ValueError("User with this email already exists")
        user = User(
            email=normalized,
            password_hash=hash_password(password),
            role=Role.ADMIN,
            name=name.strip(),
            surname=surname.strip(),
        )
        user.validate()
        user.confirm_email()
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"✓ Created admin {user.email} (id={user.id})")
        return user.id
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hiresphere-manage")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="create all tables")
    admin = sub.add_parser("create-admin", help="create an administrator account")
    admin.add_argument("--email", required=True)
    admin.add_argument("--password", required=True)
    admin.add_argument("--name", required=True)
    admin.add_argument("--surname", required=True)

    args = parser.parse_args(argv)
    configure_logging()

    try:
        if args.command == "init-db":
            init_db()
        else:
            create_admin(email=args.email, password=args.password, name=args.name, surname=args.surname)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
