"""
证书过期计算服务
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

from ..models import Status, Thresholds


# X.509 的时间总是UTC，openssl 将其显示为 GMT
GMT = timezone(timedelta(0), 'GMT')

OUTPUT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S %Z'


class ExpiryCalculator:
    """证书过期计算器"""
    
    def __init__(self, thresholds: Optional[Thresholds] = None):
        """
        初始化过期计算器
        
        Args:
            thresholds: 告警阈值，默认警告30天、错误15天
        """
        self.thresholds = thresholds or Thresholds()
    
    @staticmethod
    def days_until_expiry(not_after: datetime, now: datetime) -> int:
        """
        计算距离过期的整天数
        
        在证书自身的时区内计算，按整天截断（向零取整），
        例如剩余23小时为0天，已过期23小时同样为0天。
        
        Args:
            not_after: 证书过期时间（带时区）
            now: 当前时间（带时区）
            
        Returns:
            int: 剩余天数（负数表示已过期）
        """
        now_in_cert_zone = now.astimezone(not_after.tzinfo)
        delta = not_after - now_in_cert_zone
        if delta >= timedelta(0):
            return delta.days
        return -((-delta).days)
    
    def classify(self, days_left: int) -> Status:
        """
        按阈值对剩余天数分级
        
        更严重的ERROR优先判断，即使阈值配置为 error_days > warning_days
        也不会把应为ERROR的证书报告为WARNING。
        
        Args:
            days_left: 剩余天数
            
        Returns:
            Status: OK、WARNING 或 ERROR
        """
        if days_left < self.thresholds.error_days:
            return Status.ERROR
        if days_left < self.thresholds.warning_days:
            return Status.WARNING
        return Status.OK
    
    @staticmethod
    def format_timestamp(value: datetime) -> str:
        """格式化为 yyyy-MM-dd HH:mm:ss z"""
        return value.strftime(OUTPUT_TIMESTAMP_FORMAT)
