from typing import Dict

# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    POINTS_LEDGER: Dict[str, int] = {"min": 1, "max": 100, "default": 50}
    REDEMPTION_QUEUE: Dict[str, int] = {"min": 1, "max": 200, "default": 100}

    @staticmethod
    def clamp(limit: int, bounds: Dict[str, int]) -> int:
        """라우터를 거치지 않는 호출(서비스 직접 사용)에서도 범위를 보장"""
        return max(bounds["min"], min(limit, bounds["max"]))
