"""API 스키마 공통 베이스. 파이썬은 snake_case, JSON은 camelCase."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """요청은 camelCase·snake_case 모두 허용, 응답은 camelCase(by_alias)로 직렬화."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
