"""
证书评估器测试
"""
import pytest
from datetime import datetime, timezone, timedelta

from cert_checker.services.evaluator import CertificateEvaluator
from cert_checker.services.expiry_calculator import GMT
from cert_checker.models import CertificateFacts, Status, Target, Thresholds


NOW = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def facts_for(days: int, common_name: str = "example.com") -> CertificateFacts:
    return CertificateFacts(
        not_after=(NOW + timedelta(days=days)).astimezone(GMT),
        subject_common_name=common_name
    )


class TestCertificateEvaluator:
    """证书评估器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.evaluator = CertificateEvaluator()
        self.target = Target(host="example.com", port=443)
        self.thresholds = Thresholds(warning_days=30, error_days=15)

    def evaluate(self, facts, expected_subject=None, thresholds=None, target=None):
        return self.evaluator.evaluate(
            facts, NOW, expected_subject, thresholds or self.thresholds, target or self.target
        )

    def test_healthy_certificate(self):
        """测试健康证书"""
        result = self.evaluate(facts_for(45))

        assert result.status == Status.OK
        assert result.exit_code == 0
        assert result.message == (
            "Certificate for example.com:443 OK: 45 until expiry "
            "(2024-02-15 00:00:00 GMT) and subject is example.com."
        )

    def test_healthy_certificate_with_starttls(self):
        """测试StartTLS目标的成功消息"""
        target = Target(host="mail.example.com", port=25, starttls_protocol="smtp")

        result = self.evaluate(facts_for(45, "mail.example.com"), target=target)

        assert result.status == Status.OK
        assert result.message.startswith("Certificate for mail.example.com:25 (StartTLS smtp) OK: 45 until expiry")

    def test_subject_mismatch(self):
        """测试主题不匹配"""
        result = self.evaluate(facts_for(45, "other.com"))

        assert result.status == Status.ERROR
        assert result.exit_code == 2
        assert result.message == "Expected subject example.com but certificate for other.com."

    def test_subject_defaults_to_host(self):
        """测试未配置主题时使用主机名"""
        result = self.evaluate(facts_for(45, "example.com"), expected_subject=None)

        assert result.status == Status.OK

    def test_blank_subject_defaults_to_host(self):
        """测试空白主题按未配置处理"""
        result = self.evaluate(facts_for(45, "example.com"), expected_subject="  ")

        assert result.status == Status.OK

    def test_explicit_subject(self):
        """测试显式配置的主题"""
        result = self.evaluate(facts_for(45, "www.example.com"), expected_subject="www.example.com")

        assert result.status == Status.OK
        assert result.message.endswith("and subject is www.example.com.")

    def test_explicit_subject_mismatch_names_configured_subject(self):
        """测试不匹配消息中使用配置的主题"""
        result = self.evaluate(facts_for(45, "example.com"), expected_subject="www.example.com")

        assert result.status == Status.ERROR
        assert result.message == "Expected subject www.example.com but certificate for example.com."

    def test_warning_period(self):
        """测试警告期内的证书"""
        result = self.evaluate(facts_for(20))

        assert result.status == Status.WARNING
        assert result.exit_code == 1
        assert result.message == "Certificate expires on 2024-01-21 00:00:00 GMT which is in 20 days."

    def test_error_period_takes_precedence(self):
        """测试同时满足两个阈值时报告ERROR"""
        result = self.evaluate(facts_for(10))

        assert result.status == Status.ERROR
        assert result.exit_code == 2
        assert result.message == "Certificate expires on 2024-01-11 00:00:00 GMT which is in 10 days."

    def test_error_threshold_above_warning_threshold(self):
        """测试错误阈值大于警告阈值的配置"""
        thresholds = Thresholds(warning_days=15, error_days=30)

        assert self.evaluate(facts_for(20), thresholds=thresholds).status == Status.ERROR
        assert self.evaluate(facts_for(10), thresholds=thresholds).status == Status.ERROR
        assert self.evaluate(facts_for(40), thresholds=thresholds).status == Status.OK

    @pytest.mark.parametrize("days, expected", [
        (30, Status.OK),
        (29, Status.WARNING),
        (15, Status.WARNING),
        (14, Status.ERROR),
    ])
    def test_threshold_boundaries(self, days, expected):
        """测试阈值边界"""
        assert self.evaluate(facts_for(days)).status == expected

    def test_expired_certificate(self):
        """测试已过期证书"""
        result = self.evaluate(facts_for(-3))

        assert result.status == Status.ERROR
        assert "which is in -3 days." in result.message

    def test_expiry_and_subject_mismatch_both_reported(self):
        """测试同时报告过期和主题不匹配"""
        result = self.evaluate(facts_for(20, "other.com"))

        assert result.status == Status.ERROR
        assert result.lines == [
            "Certificate expires on 2024-01-21 00:00:00 GMT which is in 20 days.",
            "Expected subject example.com but certificate for other.com.",
        ]

    def test_partial_day_is_not_counted(self):
        """测试剩余不足一天时为0天"""
        now = datetime(2024, 1, 1, 23, 0, 0, tzinfo=timezone.utc)
        facts = CertificateFacts(
            not_after=datetime(2024, 1, 2, 1, 0, 0, tzinfo=GMT),
            subject_common_name="example.com"
        )

        result = self.evaluator.evaluate(facts, now, None, self.thresholds, self.target)

        assert result.status == Status.ERROR
        assert "which is in 0 days." in result.message

    def test_subject_comparison_is_exact(self):
        """测试主题比较区分大小写"""
        result = self.evaluate(facts_for(45, "Example.com"))

        assert result.status == Status.ERROR
