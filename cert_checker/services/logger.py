"""
日志服务
"""
import os
import sys
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from ..interfaces import LoggerServiceInterface
from ..models import Target, CertificateFacts, CheckResult, Status


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "cert_checker", log_level: Optional[str] = None):
        """
        初始化日志服务

        标准输出保留给插件结果，日志一律写到标准错误。

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'WARNING')

        # 配置日志器
        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.start_time = None
        self.end_time = None

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.WARNING)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)
        else:
            for handler in self.logger.handlers:
                handler.setLevel(level)

        # 防止日志传播到根日志器
        self.logger.propagate = False

    def log_check_start(self, target: Target):
        """
        记录检查开始

        Args:
            target: 检查目标
        """
        self.start_time = datetime.now(timezone.utc)

        protocol = f" (StartTLS {target.starttls_protocol})" if target.starttls_protocol else ""
        self.logger.info(f"开始证书检查: {target.address}{protocol}")

    def log_certificate_facts(self, target: Target, facts: CertificateFacts):
        """
        记录证书信息

        Args:
            target: 检查目标
            facts: 证书信息
        """
        self.logger.info(
            f"获取到证书 - 目标: {target.address}, "
            f"主题CN: {facts.subject_common_name}, "
            f"过期时间: {facts.not_after.isoformat()}"
        )

    def log_result(self, result: CheckResult):
        """
        记录检查结果

        Args:
            result: 检查结果
        """
        self.end_time = datetime.now(timezone.utc)
        summary = result.message.replace("\n", " | ")

        if result.status == Status.OK:
            self.logger.info(f"检查完成 - 状态: {result.status.name}, 消息: {summary}")
        elif result.status == Status.UNKNOWN:
            self.logger.error(f"检查完成 - 状态: {result.status.name}, 消息: {summary}")
        else:
            self.logger.warning(f"检查完成 - 状态: {result.status.name}, 消息: {summary}")

        self.logger.info(f"总执行时间: {self.get_duration():.2f} 秒")

    def log_error(self, target: Target, error: Exception):
        """
        记录错误信息

        Args:
            target: 检查目标
            error: 异常对象
        """
        address = target.address if target is not None else "unknown"
        self.logger.error(
            f"目标 {address} 检查时发生错误: {type(error).__name__}: {str(error)}"
        )

        # 记录详细的堆栈跟踪（调试级别）
        self.logger.debug(f"目标 {address} 错误堆栈跟踪:\n{traceback.format_exc()}")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        self.logger.debug("检查配置:")
        for key, value in config.items():
            self.logger.debug(f"  {key}: {value}")

    def get_duration(self) -> float:
        """
        获取执行时长

        Returns:
            float: 秒数，未开始时为0
        """
        if not self.start_time:
            return 0.0
        end_time = self.end_time or datetime.now(timezone.utc)
        return (end_time - self.start_time).total_seconds()
