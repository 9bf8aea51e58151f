"""
One-off: promote an existing user to the admin role.
Usage: python grant_admin.py someone@salonos.ai
"""
import os
import sys
from sqlalchemy import create_engine, text
from dotenv import load_dotenv

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")

if len(sys.argv) != 2:
    sys.exit("usage: python grant_admin.py <email>")
email = sys.argv[1].strip().lower()

engine = create_engine(DATABASE_URL)

with engine.connect() as conn:
    result = conn.execute(
        text("UPDATE users SET role = 'admin' WHERE lower(email) = :email"),
        {"email": email},
    )
    conn.commit()
    if result.rowcount:
        print(f"✅ {email} promoted to admin")
    else:
        print(f"❌ No user with email {email}")
