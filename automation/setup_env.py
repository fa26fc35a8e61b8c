#!/usr/bin/env python3
"""
Helper script to create .env file from template.
"""

import os

ENV_TEMPLATE = """# Supabase Configuration (leave empty to keep submissions in memory)
SUPABASE_URL=https://YOURPROJECT.supabase.co
SUPABASE_SERVICE_ROLE_KEY=YOUR_SERVICE_KEY
SUPABASE_TABLE=submissions

# Administrator bearer token for review, export and certificate endpoints
ADMIN_API_KEY=CHANGE_ME

# Public origin + path printed into certificate QR codes
PUBLIC_BASE_URL=https://arm.example.uz/

# Certificate QR codes
QR_SIZE=100
QR_MARGIN=1
QR_DARK=#0f172a
QR_LIGHT=#ffffff

# Reporting
TIMEZONE=Asia/Tashkent
EXPORT_DIR=./exports

# Optional hardening
STRICT_TRANSITIONS=false
VALIDATE_WRITES=false

# Seconds between keepalive comments on the submissions stream
STREAM_KEEPALIVE=15

# Server
HOST=0.0.0.0
PORT=8080
FLASK_ENV=production
LOG_LEVEL=INFO
"""

def main():
    env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
    
    if os.path.exists(env_path):
        print(f".env file already exists at {env_path}")
        response = input("Overwrite? (y/N): ")
        if response.lower() != 'y':
            print("Skipping .env creation")
            return
    
    with open(env_path, 'w', encoding="utf-8") as f:
        f.write(ENV_TEMPLATE)
    
    print(f"✅ Created .env file at {env_path}")
    print("⚠️  Please edit .env and update SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and ADMIN_API_KEY")

if __name__ == "__main__":
    main()
