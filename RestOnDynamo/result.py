import asyncio
from typing import Optional, Any, Dict, Generic, TypeVar, Awaitable

from pydantic import BaseModel, ConfigDict

from RestOnDynamo.errors import ErrorType, SuccessType, ErrorStatusCodeRange, ErrorTypeOverride, BackendError, \
    determine_error_status_range, classify_backend_error, aws_error_message
from RestOnDynamo.exceptions import EnvelopeValidationException, NoRunningEventLoopException


T = TypeVar('T')


class Err(Exception):
    """
    Error of a REST call, unifying the failures of DynamoDB requests and the violations of the REST paradigm.
    Instances are created with Err.Builder and are read-only. Since an Err is an exception, it is
    what a Result future is rejected with.
    """

    def __init__(
            self, is_aws_error: bool, default_status_code: int, message: str,
            error_type: ErrorType, error_status_code_range: ErrorStatusCodeRange,
            aws_error: Optional[BackendError] = None
    ):
        super().__init__(message)
        self._is_aws_error = is_aws_error
        self._default_status_code = default_status_code
        self._message = message
        self._error_type = error_type
        self._error_status_code_range = error_status_code_range
        self._aws_error = aws_error

    @property
    def is_aws_error(self) -> bool:
        return self._is_aws_error

    @property
    def aws_error(self) -> Optional[BackendError]:
        """The original ClientError or BotoCoreError, only present if is_aws_error is True."""
        return self._aws_error

    @property
    def default_status_code(self) -> int:
        return self._default_status_code

    @property
    def message(self) -> str:
        # When is_aws_error is True, this is the message of the aws error
        return self._message

    @property
    def error_type(self) -> ErrorType:
        return self._error_type

    @property
    def error_status_code_range(self) -> ErrorStatusCodeRange:
        return self._error_status_code_range

    def __repr__(self) -> str:
        return f"Err(default_status_code={self._default_status_code}, error_type={self._error_type.name}, message={self._message!r})"

    class Builder:
        """
        To pass validation, either call with_aws_error(), or call both with_error_type() and with_message().
        If an aws error is given, it supersedes the error type and message.
        """

        def __init__(self):
            self.message: Optional[str] = None
            self.error_type: Optional[ErrorType] = None
            self.aws_error: Optional[BackendError] = None
            self.aws_error_code_to_error_type_override: ErrorTypeOverride = {}

        def with_aws_error(self, aws_error: BackendError) -> 'Err.Builder':
            self.aws_error = aws_error
            return self

        def with_error_type(self, error_type: ErrorType) -> 'Err.Builder':
            self.error_type = ErrorType(error_type)
            return self

        def with_message(self, message: str) -> 'Err.Builder':
            self.message = message
            return self

        def with_aws_error_code_to_error_type_override(self, override: ErrorTypeOverride) -> 'Err.Builder':
            self.aws_error_code_to_error_type_override = {**self.aws_error_code_to_error_type_override, **override}
            return self

        def validate(self) -> None:
            if self.aws_error is None and not (self.error_type is not None and self.message):
                raise EnvelopeValidationException("Both error_type and message have to be supplied when no aws_error is provided")

        def build(self) -> 'Err':
            self.validate()
            if self.aws_error is not None:
                error_type: ErrorType = classify_backend_error(
                    aws_error=self.aws_error, error_code_override=self.aws_error_code_to_error_type_override
                )
                return Err(
                    is_aws_error=True, default_status_code=int(error_type),
                    message=aws_error_message(self.aws_error), error_type=error_type,
                    error_status_code_range=determine_error_status_range(error_type),
                    aws_error=self.aws_error
                )
            return Err(
                is_aws_error=False, default_status_code=int(self.error_type),
                message=self.message, error_type=self.error_type,
                error_status_code_range=determine_error_status_range(self.error_type)
            )


class Ok(BaseModel):
    """Resolved data of a REST call. Instances are created with Ok.Builder and are frozen."""
    model_config = ConfigDict(frozen=True)

    default_status_code: SuccessType
    data: Optional[Any] = None

    class Builder:
        def __init__(self):
            self.data: Optional[Any] = None
            self.default_status_code: Optional[SuccessType] = None

        def with_data(self, data: Any) -> 'Ok.Builder':
            self.data = data
            return self

        def with_default_status_code(self, default_status_code: SuccessType) -> 'Ok.Builder':
            self.default_status_code = SuccessType(default_status_code)
            return self

        def validate(self) -> None:
            if self.default_status_code is None:
                raise EnvelopeValidationException("default_status_code has to be set")

        def build(self) -> 'Ok':
            self.validate()
            return Ok(default_status_code=self.default_status_code, data=self.data)


class Result(Generic[T]):
    """
    Single future of a REST call, resolved with an Ok or rejected with an Err.
    Must be created while an event loop is running.
    """

    def __init__(self, call: Awaitable[T]):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if asyncio.iscoroutine(call):
                call.close()
            raise NoRunningEventLoopException() from None
        self._call_future: asyncio.Future = asyncio.ensure_future(call)

    def future(self) -> asyncio.Future:
        return self._call_future


def ok_response(default_status_code: SuccessType, data: Optional[Any] = None) -> Ok:
    builder = Ok.Builder().with_default_status_code(default_status_code)
    if data is not None:
        builder.with_data(data)
    return builder.build()


def aws_err_response(aws_error: BackendError, error_code_override: Optional[Dict[str, ErrorType]] = None) -> Err:
    builder = Err.Builder().with_aws_error(aws_error)
    if error_code_override is not None:
        builder.with_aws_error_code_to_error_type_override(error_code_override)
    return builder.build()


def rest_err_response(error_type: ErrorType, message: str) -> Err:
    return Err.Builder().with_error_type(error_type).with_message(message).build()
