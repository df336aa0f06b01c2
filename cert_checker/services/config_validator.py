"""
配置验证服务
"""
import re
import ipaddress
from typing import Dict, Any
import logging

from . import starttls
from .check_config import CheckConfig
from .error_handler import ConfigurationError


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)

        # 主机名格式（允许单标签主机名，例如 localhost）
        self.host_pattern = re.compile(
            r'^(?:[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9])?)'
            r'(?:\.[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9])?)*\.?$'
        )

    def validate(self, config: CheckConfig) -> Dict[str, Any]:
        """
        验证检查配置

        Args:
            config: 检查配置

        Returns:
            Dict[str, Any]: 验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': []
        }

        if not self.validate_host(config.host):
            result['errors'].append(f"Invalid host: {config.host!r}")

        if not 1 <= config.port <= 65535:
            result['errors'].append(f"Invalid port: {config.port}")

        if config.warning_days < 0:
            result['errors'].append(f"Warning days must not be negative: {config.warning_days}")

        if config.error_days < 0:
            result['errors'].append(f"Error days must not be negative: {config.error_days}")

        if config.timeout <= 0:
            result['errors'].append(f"Timeout must be positive: {config.timeout}")

        protocol = config.starttls_protocol
        if protocol is not None and protocol.strip() and not starttls.is_supported(protocol):
            result['errors'].append(
                f"Unsupported StartTLS protocol: {protocol} "
                f"(supported: {', '.join(starttls.supported_protocols())})"
            )

        if config.error_days > config.warning_days:
            result['warnings'].append(
                f"错误阈值({config.error_days}天)大于警告阈值({config.warning_days}天)，"
                f"剩余天数少于 {config.error_days} 天时均报告ERROR"
            )

        if config.expected_subject is not None and not config.expected_subject.strip():
            result['warnings'].append("期望主题为空，使用主机名")

        result['is_valid'] = not result['errors']

        for warning in result['warnings']:
            self.logger.warning(warning)

        return result

    def raise_if_invalid(self, config: CheckConfig):
        """
        配置无效时抛出异常

        Args:
            config: 检查配置

        Raises:
            ConfigurationError: 配置无效
        """
        result = self.validate(config)
        if not result['is_valid']:
            raise ConfigurationError("; ".join(result['errors']))

    def validate_host(self, host: str) -> bool:
        """
        验证主机名或IP地址

        Args:
            host: 主机

        Returns:
            bool: 是否有效
        """
        if not host or not isinstance(host, str):
            return False

        if len(host) > 253:
            return False

        try:
            ipaddress.ip_address(host)
            return True
        except ValueError:
            pass

        return bool(self.host_pattern.match(host))
