from enum import Enum

from sqlmodel import Field, SQLModel


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ARTIST = "ARTIST"
    ADMIN = "ADMIN"


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    role: UserRole = Field(default=UserRole.CUSTOMER)


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserPublic(SQLModel):
    id: int
    email: str
    full_name: str | None = None
    role: UserRole
