"""
Pydantic request/response models.

All models derive from schemas.common.CamelModel: JSON uses camelCase keys,
snake_case field names are accepted on input as well, and ORM rows validate
directly via from_attributes.
"""
