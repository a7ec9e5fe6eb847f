"""User / Principal Domain Model

用户由 Directory 持有，对变更引擎而言只读。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import UserRole, UserStatus


class User(BaseModel):
    """用户记录"""

    email: str = Field(description="身份标识（邮箱），Directory 主键")
    user_id: str = Field(description="ULID")
    role: UserRole = Field(default=UserRole.MEMBER, description="角色")
    status: UserStatus = Field(default=UserStatus.ACTIVE, description="账号状态")
    created_at: datetime = Field(description="创建时间")


class Actor(BaseModel):
    """当前请求的操作者"""

    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AssigneeFacts(BaseModel):
    """候选被分配人的查询结果"""

    exists: bool
    active: bool = False
    role: UserRole | None = None
