"""
证书评估服务
"""
from datetime import datetime
from typing import Optional

from ..models import CertificateFacts, CheckResult, Status, Target, Thresholds
from .expiry_calculator import ExpiryCalculator


class CertificateEvaluator:
    """证书评估器：根据过期天数和主题给出监控状态"""

    def evaluate(self, facts: CertificateFacts, now: datetime, expected_subject: Optional[str],
                 thresholds: Thresholds, target: Target) -> CheckResult:
        """
        评估证书

        Args:
            facts: 证书信息
            now: 当前时间
            expected_subject: 期望的主题，未配置时使用目标主机名
            thresholds: 告警阈值
            target: 检查目标

        Returns:
            CheckResult: 状态和消息
        """
        calculator = ExpiryCalculator(thresholds)
        days_left = calculator.days_until_expiry(facts.not_after, now)
        expiry_status = calculator.classify(days_left)
        expires_on = calculator.format_timestamp(facts.not_after)

        subject = (expected_subject or "").strip() or target.host
        subject_matches = facts.subject_common_name == subject

        status = expiry_status
        if not subject_matches:
            # 主题不匹配总是ERROR
            status = Status.ERROR

        if status == Status.OK:
            message = self._success_message(target, days_left, expires_on, facts.subject_common_name)
        else:
            lines = []
            if expiry_status != Status.OK:
                lines.append(f"Certificate expires on {expires_on} which is in {days_left} days.")
            if not subject_matches:
                lines.append(f"Expected subject {subject} but certificate for {facts.subject_common_name}.")
            message = "\n".join(lines)

        return CheckResult(status=status, message=message)

    @staticmethod
    def _success_message(target: Target, days_left: int, expires_on: str, subject: str) -> str:
        parts = [f"Certificate for {target.address}"]
        if target.starttls_protocol:
            parts.append(f"(StartTLS {target.starttls_protocol})")
        parts.append(f"OK: {days_left} until expiry ({expires_on}) and subject is {subject}.")
        return " ".join(parts)
