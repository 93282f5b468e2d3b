"""Script to create the initial admin user and sample data."""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import SessionLocal, init_db
from app.models.user import User, UserRole
from app.seed import seed_defaults


def create_admin():
    """Create tables, then the default admin and sample equipment if missing."""
    init_db(seed=False)

    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if admin:
            print(f"Admin user already exists: {admin.email}")
        seed_defaults(db)
        if not admin:
            print("Admin user created successfully!")
            print("Email: admin@test.com")
            print("Password: admin123")
            print("\nPlease change the password after first login!")
    finally:
        db.close()


if __name__ == "__main__":
    create_admin()
