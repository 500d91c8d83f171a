#!/usr/bin/env python3
"""
Seed an admin account and a demo member for local development
Run with: python seed_admin.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from datetime import date, timedelta
from dotenv import load_dotenv

load_dotenv()

from sqlmodel import Session, select
from database import engine, create_db_and_tables
from models import User, UserRole, MembershipStatus
from auth import get_password_hash

ADMIN_EMAIL = "admin@medico.in"
MEMBER_EMAIL = "member@medico.in"
TEST_PASSWORD = "Test@123"


def seed():
    create_db_and_tables()
    password_hash = get_password_hash(TEST_PASSWORD)

    with Session(engine) as session:
        admin = session.exec(select(User).where(User.email == ADMIN_EMAIL)).first()
        if not admin:
            session.add(User(
                email=ADMIN_EMAIL,
                password_hash=password_hash,
                role=UserRole.ADMIN,
                name="Admin User",
            ))
            print(f"✅ Created: Admin User ({ADMIN_EMAIL})")
        else:
            print(f"⏭️  Exists: Admin User ({ADMIN_EMAIL})")

        member = session.exec(select(User).where(User.email == MEMBER_EMAIL)).first()
        if not member:
            session.add(User(
                email=MEMBER_EMAIL,
                password_hash=password_hash,
                role=UserRole.MEMBER,
                name="Demo Member",
                phone="9876543210",
                membership_id="MED-000001",
                plan="Family",
                family_members=2,
                family_details=[
                    {"name": "Asha", "relation": "spouse", "age": 34},
                    {"name": "Arun", "relation": "child", "age": 8},
                ],
                valid_until=date.today() + timedelta(days=365),
                status=MembershipStatus.ACTIVE,
            ))
            print(f"✅ Created: Demo Member ({MEMBER_EMAIL}, MED-000001)")
        else:
            print(f"⏭️  Exists: Demo Member ({MEMBER_EMAIL})")

        session.commit()

    print(f"\nPassword for both accounts: {TEST_PASSWORD}")


if __name__ == "__main__":
    seed()
