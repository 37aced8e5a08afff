from pydantic import BaseModel, EmailStr, Field

class UserSchema(BaseModel):
    fullname: str = Field(..., min_length=1)
    email: EmailStr = Field(...)
    password: str = Field(..., min_length=8)


class UserLoginSchema(BaseModel):
    email: EmailStr = Field(...)
    password: str = Field(...)
