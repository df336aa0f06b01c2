"""
命令行入口点
"""
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .interfaces import CertificateRetrieverInterface
from .models import CheckResult
from .services.certificate_retriever import CertificateRetriever
from .services.check_config import CheckConfig, CheckConfigManager
from .services.config_validator import ConfigValidator
from .services.error_handler import ErrorHandler
from .services.evaluator import CertificateEvaluator
from .services.logger import LoggerService


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CertChecker:
    """证书检查器主类"""

    def __init__(self, config: CheckConfig,
                 retriever: Optional[CertificateRetrieverInterface] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """
        初始化检查器

        Args:
            config: 检查配置
            retriever: 证书获取器，默认按配置的超时时间创建
            clock: 返回当前时间的函数
        """
        self.config = config
        self.clock = clock

        # 初始化服务组件
        self.logger_service = LoggerService(log_level=config.log_level)
        self.config_validator = ConfigValidator()
        self.retriever = retriever or CertificateRetriever(timeout=config.timeout)
        self.evaluator = CertificateEvaluator()
        self.error_handler = ErrorHandler()

        self.logger_service.log_configuration_info(config.to_dict())

    def execute(self) -> CheckResult:
        """
        执行一次证书检查，任何异常都转换为UNKNOWN结果

        Returns:
            CheckResult: 检查结果
        """
        target = None
        try:
            self.config_validator.raise_if_invalid(self.config)
            target = self.config.target

            self.logger_service.log_check_start(target)

            facts = self.retriever.retrieve(target)
            self.logger_service.log_certificate_facts(target, facts)

            result = self.evaluator.evaluate(
                facts,
                self.clock(),
                self.config.expected_subject,
                self.config.thresholds,
                target,
            )

        except Exception as e:
            self.logger_service.log_error(target, e)
            result = self.error_handler.to_result(e, target)

        self.logger_service.log_result(result)
        return result


def main(argv: Optional[List[str]] = None) -> int:
    """
    插件入口

    Args:
        argv: 命令行参数

    Returns:
        int: 退出码（0=OK, 1=WARNING, 2=ERROR, 3=UNKNOWN）
    """
    try:
        config = CheckConfigManager().parse_args(argv)
        result = CertChecker(config).execute()
    except Exception as e:
        result = ErrorHandler().to_result(e)

    print(result.message)
    return result.exit_code

