"""Create or update the portal administrator."""

import os

from app import create_app
from models import db
from models.user import User

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "AdminPass123")


def main() -> None:
    app = create_app()
    with app.app_context():
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if admin is None:
            admin = User(email=ADMIN_EMAIL, role="admin", email_verified=True)
            db.session.add(admin)
            action = "created"
        else:
            admin.role = "admin"
            admin.is_active = True
            admin.login_attempts = 0
            admin.locked_until = None
            action = "updated"
        admin.set_password(ADMIN_PASSWORD)
        db.session.commit()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
