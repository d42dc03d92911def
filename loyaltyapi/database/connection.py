from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from loyaltyapi.config import Settings, settings


def build_engine(settings: Settings) -> Engine:
    """Create an engine for either PostgreSQL or SQLite"""
    database_url = settings.database_url
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # 연결 유효성 검사
        pool_recycle=3600,  # 1시간마다 연결 재생성
        echo=settings.DEBUG,  # 디버그 모드에서 SQL 로깅
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: 커밋 후에도 응답 직렬화에서 속성 접근 가능
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


# 스크립트(get_db_context)용 기본 엔진. 앱은 컨테이너의 엔진을 사용
engine = build_engine(settings)
SessionLocal = build_session_factory(engine)
