from pydantic import BaseModel, Field, EmailStr, ConfigDict
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from typing import Optional, Dict, Any
from bson import ObjectId

class PyObjectId(ObjectId):
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler
    ) -> core_schema.CoreSchema:
        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema([
                core_schema.str_schema(),
                core_schema.no_info_plain_validator_function(cls.validate),
            ]),
            python_schema=core_schema.union_schema([
                core_schema.is_instance_schema(ObjectId),
                core_schema.chain_schema([
                    core_schema.str_schema(),
                    core_schema.no_info_plain_validator_function(cls.validate),
                ])
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda x: str(x)
            ),
        )

    @classmethod
    def validate(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Invalid objectid")
        return ObjectId(v)

    @classmethod
    def __get_pydantic_json_schema__(
        cls, schema: core_schema.CoreSchema, handler
    ) -> JsonSchemaValue:
        return {"type": "string"}

class SignUpRequest(BaseModel):
    fullname: str = ""
    email: EmailStr
    password: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "fullname": "Alex Morgan",
                "email": "alex@example.com",
                "password": "Secret123"
            }
        }
    )

class SignInRequest(BaseModel):
    email: str
    password: str = ""

class GoogleAuthRequest(BaseModel):
    access_token: str = Field(..., min_length=1)

class ChangePasswordRequest(BaseModel):
    current_password: str = Field("", alias="currentPassword")
    new_password: str = Field("", alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)

class ProfileImageUpdate(BaseModel):
    url: str

class ProfileUpdate(BaseModel):
    username: str = ""
    bio: Optional[str] = ""
    social_links: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "alexdesign",
                "bio": "UI/UX Designer with 10+ years experience",
                "social_links": {"github": "https://github.com/alexdesign", "website": ""}
            }
        }
    )

class AuthResponse(BaseModel):
    access_token: str
    profile_img: Optional[str] = None
    username: str
    fullname: str
    is_admin: bool = Field(False, alias="isAdmin")

    model_config = ConfigDict(populate_by_name=True)
