"""
测试公共夹具
"""
import pytest
from datetime import datetime, timezone, timedelta

from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec


def build_certificate(common_name="example.com", not_after=None, organization=None):
    """
    生成自签名证书

    Returns:
        tuple: (证书对象, 私钥)
    """
    if not_after is None:
        not_after = datetime.now(timezone.utc) + timedelta(days=45)
    not_after = not_after.replace(microsecond=0)

    attributes = []
    if organization:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attributes)

    key = ec.generate_private_key(ec.SECP256R1())
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=365))
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert, key


@pytest.fixture
def make_der_certificate():
    """返回生成DER证书的工厂函数"""
    def factory(common_name="example.com", not_after=None, organization=None) -> bytes:
        cert, _ = build_certificate(common_name, not_after, organization)
        return cert.public_bytes(serialization.Encoding.DER)
    return factory


@pytest.fixture
def make_pem_files(tmp_path):
    """返回把证书和私钥写入临时PEM文件的工厂函数"""
    def factory(common_name="localhost", not_after=None):
        cert, key = build_certificate(common_name, not_after)
        cert_file = tmp_path / "cert.pem"
        key_file = tmp_path / "key.pem"
        cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
        key_file.write_bytes(
            key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            )
        )
        return cert, str(cert_file), str(key_file)
    return factory
