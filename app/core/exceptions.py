"""서비스 레이어 예외. main의 exception handler가 status_code로 변환."""


class ServiceError(Exception):
    """도메인 예외 베이스. message는 그대로 클라이언트 응답 detail이 됨."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidFieldError(ServiceError):
    """필수 필드 누락·형식 오류 (400)."""

    status_code = 400


class AuthError(ServiceError):
    """자격 증명·토큰 오류 (401). 로그인 실패 메시지는 계정 존재 여부를 드러내지 않음."""

    status_code = 401


class NotFoundError(ServiceError):
    """없음 또는 소유자 아님 (404). 두 경우를 구분하지 않음."""

    status_code = 404


class ConflictError(ServiceError):
    """중복 이메일·슬러그 (409)."""

    status_code = 409
