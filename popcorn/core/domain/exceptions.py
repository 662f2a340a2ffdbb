"""Base domain exceptions.

所有领域异常都应继承自 DomainException，并可以通过定义 error_code 类属性
来给调用方（API / 通知服务）提供稳定的错误代码。

注意：Redis 传输层错误（连接失败、超时）不在此处包装，原样抛给调用方。
"""


class DomainException(Exception):
    """Base exception for all domain errors.

    子类可以通过定义 error_code 类属性来自定义错误代码（默认 "DOMAIN_ERROR"）。
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "A domain error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainException):
    """Raised when validation fails."""

    error_code = "VALIDATION_ERROR"


class MissingIdentityError(ValidationError):
    """Raised when a required identity field is missing or blank."""

    error_code = "MISSING_IDENTITY"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required identity field '{field}'")


def require_identity(value: object, field: str) -> str:
    """校验身份字段非空，返回去除空白后的字符串。

    在任何存储调用之前同步执行。
    """
    if value is None or isinstance(value, bool):
        raise MissingIdentityError(field)
    text = str(value).strip()
    if not text:
        raise MissingIdentityError(field)
    return text
