from typing import Optional, Any, Dict

from .errors import ValidationException, ValidationError, missing_fields_error


class Validator:
    """입력 검증을 위한 유틸리티 클래스"""

    @staticmethod
    def is_empty(value: Any) -> bool:
        """None 또는 빈 문자열 (공백만 있는 문자열은 값으로 취급)"""
        return value is None or value == ""

    @staticmethod
    def validate_required_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """여러 필수 필드를 한 번에 검증 (누락된 필드를 모두 보고)"""
        missing = [name for name, value in fields.items() if Validator.is_empty(value)]
        if missing:
            raise missing_fields_error(missing)
        return fields

    @staticmethod
    def validate_string_length(
        value: str,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None
    ) -> str:
        """문자열 길이 검증"""
        errors = []

        if min_length and len(value) < min_length:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Must be at least {min_length} characters long",
                    value=len(value)
                )
            )

        if max_length and len(value) > max_length:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Must be no more than {max_length} characters long",
                    value=len(value)
                )
            )

        if errors:
            raise ValidationException(
                f"{field_name} is too long" if max_length and len(value) > max_length
                else f"{field_name} length validation failed",
                validation_errors=errors
            )

        return value
