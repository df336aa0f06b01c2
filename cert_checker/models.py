"""
数据模型定义
"""
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional, List


class Status(IntEnum):
    """监控插件状态，值即为进程退出码"""
    OK = 0
    WARNING = 1
    ERROR = 2
    UNKNOWN = 3


@dataclass(frozen=True)
class Target:
    """检查目标"""
    host: str
    port: int = 443
    starttls_protocol: Optional[str] = None

    def __post_init__(self):
        protocol = self.starttls_protocol
        if protocol is not None:
            protocol = protocol.strip().lower() or None
        object.__setattr__(self, 'starttls_protocol', protocol)

    @property
    def address(self) -> str:
        """host:port 形式的地址"""
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class CertificateFacts:
    """握手时观察到的叶子证书信息"""
    not_after: datetime
    subject_common_name: str


@dataclass(frozen=True)
class Thresholds:
    """告警阈值（天）"""
    warning_days: int = 30
    error_days: int = 15


@dataclass
class CheckResult:
    """单次检查结果"""
    status: Status
    message: str

    @property
    def exit_code(self) -> int:
        """与状态一一对应的退出码"""
        return int(self.status)

    @property
    def lines(self) -> List[str]:
        return self.message.splitlines()
