"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from ..models import CheckResult, Status


TRANSPORT_NAME = "openSSL"


class CertificateCheckError(Exception):
    """证书检查错误基类"""


class CertificateConnectionError(CertificateCheckError, ConnectionError):
    """连接、握手或STARTTLS协商失败"""


class EmptyResponseError(CertificateConnectionError):
    """对端没有任何输出，通常意味着无法建立连接"""

    def __init__(self, transport: str = TRANSPORT_NAME):
        self.transport = transport
        super().__init__(f"Got no output from {transport}, maybe could not connect.")


class CertificateParseError(CertificateCheckError, ValueError):
    """握手成功但无法提取证书字段"""


class ConfigurationError(CertificateCheckError, ValueError):
    """配置无效"""


class ErrorHandler:
    """检查错误处理器：把任意异常转换为UNKNOWN结果"""

    GENERIC_PREFIX = "Could not validate certificate: "

    def __init__(self):
        """初始化错误处理器"""
        self.logger = logging.getLogger(__name__)

    def to_result(self, error: Exception, target: Optional[Any] = None) -> CheckResult:
        """
        将异常转换为检查结果

        Args:
            error: 异常对象
            target: 检查目标（仅用于日志）

        Returns:
            CheckResult: 状态为UNKNOWN的检查结果
        """
        error_info = self.describe_error(error, target)

        if isinstance(error, EmptyResponseError):
            message = str(error)
        else:
            message = self.GENERIC_PREFIX + error_info['error_message']

        return CheckResult(status=Status.UNKNOWN, message=message)

    def describe_error(self, error: Exception, target: Optional[Any] = None) -> Dict[str, Any]:
        """
        收集错误信息并记录日志

        Args:
            error: 异常对象
            target: 检查目标

        Returns:
            Dict[str, Any]: 错误信息
        """
        error_info = {
            'target': str(getattr(target, 'address', target or '')),
            'error_type': type(error).__name__,
            'error_message': self._error_message(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        self.logger.error(
            f"目标 {error_info['target']} 证书检查失败 - "
            f"{error_info['error_type']}: {error_info['error_message']}，"
            f"建议: {error_info['suggested_action']}"
        )

        return error_info

    def _error_message(self, error: Exception) -> str:
        """
        获取异常描述，空消息时回退到异常类型名

        Args:
            error: 异常对象

        Returns:
            str: 错误描述
        """
        message = str(error)
        if not message and error.__cause__ is not None:
            message = str(error.__cause__)
        return message or type(error).__name__

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        cause = error.__cause__ if error.__cause__ is not None else error
        error_message = str(error).lower()

        if isinstance(error, EmptyResponseError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ConfigurationError):
            return "检查命令行参数"
        elif isinstance(error, CertificateParseError):
            return "证书格式异常，检查服务器配置的证书"
        elif isinstance(cause, socket.timeout):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(cause, socket.gaierror):
            return "检查主机名是否正确，DNS服务器是否可用"
        elif isinstance(cause, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(cause, ssl.SSLError):
            if 'wrong version number' in str(cause).lower():
                return "端口可能不是TLS端口，检查是否需要STARTTLS"
            return "SSL握手失败，检查SSL/TLS版本兼容性"
        elif 'starttls' in error_message:
            return "服务器拒绝STARTTLS，检查协议名称是否正确"
        else:
            return "检查网络连接和服务器状态"
