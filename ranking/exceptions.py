"""
랭킹 엔진 예외 정의
"""


class RankingError(Exception):
    """랭킹 엔진 기본 예외"""


class NotFound(RankingError):
    """팀 또는 지역이 존재하지 않음 (해당 팀-연도 계산만 실패)"""


class DataAccessError(RankingError):
    """데이터 조회 실패 (일시적 오류)"""


class ConfigurationUnavailable(RankingError):
    """설정 저장소 접근 불가 - 기본 설정으로 대체"""


class PersistenceFailure(RankingError):
    """히스토리/지역 계수 저장 실패 - 호출자에게 전달"""


class InvalidConfiguration(RankingError):
    """잘못된 점수 설정"""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or [message]
