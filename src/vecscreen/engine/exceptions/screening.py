from typing import Union


class ScreeningException(Exception):
    pass


class ConfigError(ScreeningException):
    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid value for \"{parameter}\": {reason}")


class MalformedInputError(ScreeningException):
    def __init__(self, record_id: Union[str, None], reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Record \"{record_id}\" is malformed: {reason}")


class AlignmentInvariantError(ScreeningException):
    pass
