"""
证书获取服务
"""
import ssl
import socket
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..interfaces import CertificateRetrieverInterface
from ..models import Target, CertificateFacts
from . import starttls
from .error_handler import (
    CertificateCheckError,
    CertificateConnectionError,
    CertificateParseError,
    EmptyResponseError,
)
from .expiry_calculator import GMT


class CertificateRetriever(CertificateRetrieverInterface):
    """证书获取器实现"""
    
    def __init__(self, timeout: float = 10.0):
        """
        初始化证书获取器
        
        Args:
            timeout: 连接和握手超时时间（秒）
        """
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
    
    def retrieve(self, target: Target) -> CertificateFacts:
        """
        连接目标并读取叶子证书
        
        Args:
            target: 检查目标
            
        Returns:
            CertificateFacts: 证书过期时间和主题CN
            
        Raises:
            CertificateConnectionError: 连接、STARTTLS协商或握手失败
            EmptyResponseError: 对端没有返回任何内容
            CertificateParseError: 无法解析证书字段
        """
        try:
            der_cert = self._get_peer_certificate(target)
        except CertificateCheckError:
            raise
        except ssl.SSLEOFError as e:
            # 对端在握手前关闭连接
            raise EmptyResponseError() from e
        except OSError as e:
            # socket.timeout、socket.gaierror、ssl.SSLError 都是 OSError
            raise CertificateConnectionError(
                f"Could not connect to {target.address}: {e}"
            ) from e
        
        if not der_cert:
            raise EmptyResponseError()
        
        return self.parse_certificate(der_cert)
    
    def _create_context(self) -> ssl.SSLContext:
        """创建不校验证书链的SSL上下文，以便读取过期或自签名证书"""
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context
    
    def _get_peer_certificate(self, target: Target) -> bytes:
        """
        获取对端叶子证书（DER格式）
        
        Args:
            target: 检查目标
            
        Returns:
            bytes: DER编码的证书，没有证书时为空
        """
        context = self._create_context()
        
        self.logger.debug(f"连接 {target.address}，超时 {self.timeout} 秒")
        with socket.create_connection((target.host, target.port), timeout=self.timeout) as sock:
            if target.starttls_protocol:
                starttls.upgrade(sock, target.starttls_protocol, target.host)
            
            with context.wrap_socket(sock, server_hostname=target.host) as ssock:
                self.logger.debug(f"TLS握手完成: {ssock.version()} {ssock.cipher()}")
                return ssock.getpeercert(binary_form=True)
    
    def parse_certificate(self, der_cert: bytes) -> CertificateFacts:
        """
        解析证书过期时间和主题CN
        
        Args:
            der_cert: DER编码的证书
            
        Returns:
            CertificateFacts: 证书信息
        """
        try:
            cert = x509.load_der_x509_certificate(der_cert)
            not_after = cert.not_valid_after_utc.astimezone(GMT)
            subject = cert.subject
        except ValueError as e:
            raise CertificateParseError(f"Could not parse certificate: {e}") from e
        
        common_names = subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if not common_names:
            raise CertificateParseError(f"Could not parse subject: {subject.rfc4514_string()}")
        
        common_name = common_names[0].value
        if isinstance(common_name, bytes):
            common_name = common_name.decode('utf-8', errors='replace')
        
        return CertificateFacts(
            not_after=not_after,
            subject_common_name=common_name.strip()
        )
