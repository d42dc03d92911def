"""
요청/스크립트 단위 세션 관리

커밋은 서비스 계층이 담당합니다. 여기서는 세션을 열고 닫으며,
예외로 빠져나가는 경우 남은 트랜잭션만 되돌립니다.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from loyaltyapi.database.connection import SessionLocal

logger = logging.getLogger("loyaltyapi")


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI 의존성: 앱 컨테이너의 세션 팩토리로 요청마다 새 세션"""
    session_factory = request.app.container.database.session_factory()
    db = session_factory()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.warning("Rolling back open transaction after request failure")
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context(commit: bool = True) -> Iterator[Session]:
    """스크립트용 세션. commit=True 이면 블록 종료 시 남은 변경을 커밋"""
    db = SessionLocal()
    try:
        yield db
        if commit and db.in_transaction():
            db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
