import argparse
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loyaltyapi.config import settings
from loyaltyapi.database.connection import engine
from loyaltyapi.database.schema import create_tables, drop_tables


def init_db(reset: bool = False):
    """데이터베이스 초기화 (없는 테이블/인덱스만 생성, reset 시 전체 재생성)"""
    try:
        if reset:
            drop_tables(engine)
            print("Dropped existing tables")
        create_tables(engine)
        print(f"Database initialized successfully: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create loyalty tables")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args()

    if args.reset and settings.ENVIRONMENT == "production":
        sys.exit("Refusing to drop tables in production")
    init_db(reset=args.reset)
