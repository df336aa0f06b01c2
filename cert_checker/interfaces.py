"""
服务接口定义
"""
from abc import ABC, abstractmethod
from .models import Target, CertificateFacts, CheckResult


class CertificateRetrieverInterface(ABC):
    """证书获取器接口"""
    
    @abstractmethod
    def retrieve(self, target: Target) -> CertificateFacts:
        """连接目标并返回叶子证书信息"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""
    
    @abstractmethod
    def log_check_start(self, target: Target):
        """记录检查开始"""
        pass
    
    @abstractmethod
    def log_certificate_facts(self, target: Target, facts: CertificateFacts):
        """记录证书信息"""
        pass
    
    @abstractmethod
    def log_result(self, result: CheckResult):
        """记录检查结果"""
        pass
    
    @abstractmethod
    def log_error(self, target: Target, error: Exception):
        """记录错误信息"""
        pass
