"""
检查配置管理服务
"""
import os
import argparse
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import logging

from ..models import Target, Thresholds
from .error_handler import ConfigurationError


DEFAULT_PORT = 443
DEFAULT_WARNING_DAYS = 30
DEFAULT_ERROR_DAYS = 15
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = 'WARNING'

EPILOG = (
    "StartTLS协议: smtp, lmtp, imap, pop3, ftp, xmpp, postgres\n"
    "退出码: 0=OK, 1=WARNING, 2=ERROR, 3=UNKNOWN"
)


@dataclass
class CheckConfig:
    """单次检查的配置"""
    host: str
    port: int = DEFAULT_PORT
    expected_subject: Optional[str] = None
    starttls_protocol: Optional[str] = None
    warning_days: int = DEFAULT_WARNING_DAYS
    error_days: int = DEFAULT_ERROR_DAYS
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def target(self) -> Target:
        return Target(host=self.host, port=self.port, starttls_protocol=self.starttls_protocol)

    @property
    def thresholds(self) -> Thresholds:
        return Thresholds(warning_days=self.warning_days, error_days=self.error_days)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（用于记录日志）"""
        return asdict(self)


class _PluginArgumentParser(argparse.ArgumentParser):
    """参数错误时抛出异常而不是以退出码2结束进程"""

    def error(self, message):
        raise ConfigurationError(message)


class CheckConfigManager:
    """检查配置管理器"""

    def __init__(self, timeout_env_var: str = "CERT_CHECK_TIMEOUT", log_level_env_var: str = "LOG_LEVEL"):
        """
        初始化配置管理器

        Args:
            timeout_env_var: 超时时间环境变量名称
            log_level_env_var: 日志级别环境变量名称
        """
        self.timeout_env_var = timeout_env_var
        self.log_level_env_var = log_level_env_var
        self.logger = logging.getLogger(__name__)

    def build_parser(self) -> argparse.ArgumentParser:
        """
        构建命令行解析器

        Returns:
            argparse.ArgumentParser: 解析器
        """
        parser = _PluginArgumentParser(
            prog="cert-checker",
            description="检查TLS证书的剩余有效期和主题（Icinga/Nagios插件）",
            epilog=EPILOG,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        parser.add_argument("--host", required=True, help="要连接的主机")
        parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="端口，默认443")
        parser.add_argument("--subject", dest="expected_subject",
                            help="期望的证书主题，未指定时使用主机名")
        parser.add_argument("--starttls", dest="starttls_protocol",
                            help="使用的StartTLS协议，例如 smtp、imap")
        parser.add_argument("--expire-days-warning", dest="warning_days", type=int,
                            default=DEFAULT_WARNING_DAYS, help="剩余天数少于该值时为WARNING状态")
        parser.add_argument("--expire-days-error", dest="error_days", type=int,
                            default=DEFAULT_ERROR_DAYS, help="剩余天数少于该值时为ERROR状态")
        parser.add_argument("--timeout", type=float, default=self._default_timeout(),
                            help=f"连接和握手超时时间（秒），默认读取 {self.timeout_env_var} 环境变量或10秒")
        parser.add_argument("--log-level", default=os.getenv(self.log_level_env_var, DEFAULT_LOG_LEVEL),
                            help=f"日志级别（输出到stderr），默认读取 {self.log_level_env_var} 环境变量")
        return parser

    def parse_args(self, argv: Optional[List[str]] = None) -> CheckConfig:
        """
        解析命令行参数

        Args:
            argv: 参数列表，None 时读取 sys.argv

        Returns:
            CheckConfig: 检查配置

        Raises:
            ConfigurationError: 参数无效
        """
        args = self.build_parser().parse_args(argv)
        return CheckConfig(
            host=args.host.strip(),
            port=args.port,
            expected_subject=args.expected_subject,
            starttls_protocol=args.starttls_protocol,
            warning_days=args.warning_days,
            error_days=args.error_days,
            timeout=args.timeout,
            log_level=args.log_level,
        )

    def _default_timeout(self) -> float:
        """
        从环境变量读取默认超时时间

        Returns:
            float: 超时时间（秒）
        """
        value = os.getenv(self.timeout_env_var, "")
        if not value.strip():
            return DEFAULT_TIMEOUT

        try:
            return float(value)
        except ValueError:
            self.logger.warning(f"环境变量 {self.timeout_env_var} 格式无效: {value}，使用默认值")
            return DEFAULT_TIMEOUT
