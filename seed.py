import os

from loguru import logger
from sqlmodel import Session, select

from ledger.core.permissions import DEFAULT_ROLES
from ledger.db.core import engine
from ledger.db.schema import Role, User
from ledger.services.password import get_password_hash


# Initial administrator, override through the environment
ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Administrator")
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@ledger.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD")


def seed_roles(session: Session) -> dict[str, Role]:
    """Creates the default roles and syncs their permissions. Returns name -> Role."""
    logger.info("--- Seeding Roles ---")
    role_map = {}

    for name, definition in DEFAULT_ROLES.items():
        role = session.exec(select(Role).where(Role.name == name)).first()

        if not role:
            role = Role(name=name, **definition)
            session.add(role)
            logger.info(f"Created Role: {name}")
        elif sorted(role.permissions or []) != sorted(definition["permissions"]):
            # Seed config is the source of truth for the built-in roles
            role.permissions = list(definition["permissions"])
            role.version += 1
            session.add(role)
            logger.info(f"Synced permissions of Role: {name}")
        else:
            logger.info(f"Existing Role: {name}")

        session.flush()
        role_map[name] = role

    return role_map


def seed_admin(session: Session, role_map: dict[str, Role]):
    logger.info("--- Seeding Admin User ---")

    if session.exec(select(User).where(User.email == ADMIN_EMAIL)).first():
        logger.info(f"Existing Admin: {ADMIN_EMAIL}")
        return

    if not ADMIN_PASSWORD:
        logger.warning("SEED_ADMIN_PASSWORD not set, skipping admin user")
        return

    admin = User(
        name=ADMIN_NAME,
        email=ADMIN_EMAIL,
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role_id=role_map["admin"].id,
        is_active=True,
    )
    session.add(admin)
    logger.info(f"Created Admin: {ADMIN_EMAIL}")


def main():
    # Tables are created by Alembic (alembic upgrade head)
    with Session(engine) as session:
        try:
            # 1. Roles
            role_map = seed_roles(session)

            # 2. Admin
            seed_admin(session, role_map)

            session.commit()
            logger.info("Database seeding completed successfully.")
        except Exception as e:
            session.rollback()
            logger.error(f"Seeding failed: {e}")
            raise


if __name__ == "__main__":
    main()
