"""
STARTTLS协议升级服务
"""
import socket
import struct
from typing import Callable, Dict, List, Tuple
import logging

from .error_handler import CertificateConnectionError, ConfigurationError, EmptyResponseError


CLIENT_NAME = "localhost"
MAX_LINE_LENGTH = 65536

# PostgreSQL SSLRequest: 长度8 + 请求码80877103
POSTGRES_SSL_REQUEST = struct.pack('!II', 8, 80877103)

logger = logging.getLogger(__name__)


class PlaintextSession:
    """明文会话，用于TLS升级前的协议交互"""

    def __init__(self, sock: socket.socket, protocol: str):
        """
        初始化明文会话

        Args:
            sock: 已连接的套接字
            protocol: 协议名称（用于错误信息）
        """
        self.sock = sock
        self.protocol = protocol
        self.buffer = b''
        self.received_any = False

    def send_line(self, line: str):
        """发送一行命令（自动追加CRLF）"""
        logger.debug(f"[{self.protocol}] C: {line}")
        self.sock.sendall(line.encode('ascii') + b'\r\n')

    def send_raw(self, data: bytes):
        """发送原始字节"""
        self.sock.sendall(data)

    def _fill(self):
        """从套接字读取更多数据到缓冲区"""
        chunk = self.sock.recv(4096)
        if not chunk:
            if not self.received_any:
                raise EmptyResponseError()
            raise CertificateConnectionError(
                f"Connection closed by peer during {self.protocol} StartTLS negotiation"
            )
        self.received_any = True
        self.buffer += chunk
        if len(self.buffer) > MAX_LINE_LENGTH:
            raise CertificateConnectionError(
                f"Response too long during {self.protocol} StartTLS negotiation"
            )

    def read_line(self) -> str:
        """
        读取一行响应

        Returns:
            str: 去掉行尾的响应行
        """
        while b'\n' not in self.buffer:
            self._fill()

        raw, self.buffer = self.buffer.split(b'\n', 1)
        line = raw.rstrip(b'\r').decode('ascii', errors='replace')
        logger.debug(f"[{self.protocol}] S: {line}")
        return line

    def read_reply(self) -> Tuple[int, List[str]]:
        """
        读取SMTP/FTP风格的数字应答（支持多行）

        Returns:
            Tuple[int, List[str]]: 应答码和全部应答行
        """
        first = self.read_line()
        code = first[:3]
        if not code.isdigit():
            raise CertificateConnectionError(
                f"Unexpected {self.protocol} reply: {first}"
            )

        lines = [first]
        if first[3:4] == '-':
            # 多行应答以 "<code> " 开头的行结束
            while True:
                line = self.read_line()
                lines.append(line)
                if line.startswith(code + ' ') or line == code:
                    break

        return int(code), lines

    def read_until(self, *markers: bytes) -> bytes:
        """
        读取直到出现任一标记

        Args:
            markers: 结束标记

        Returns:
            bytes: 包含标记在内的数据
        """
        while True:
            found = [(self.buffer.find(m), m) for m in markers if m in self.buffer]
            if found:
                index, marker = min(found)
                end = index + len(marker)
                data, self.buffer = self.buffer[:end], self.buffer[end:]
                return data
            self._fill()

    def read_exact(self, size: int) -> bytes:
        """读取固定长度的字节"""
        while len(self.buffer) < size:
            self._fill()
        data, self.buffer = self.buffer[:size], self.buffer[size:]
        return data

    def ensure_drained(self):
        """确认升级前没有多余的明文数据"""
        if self.buffer:
            raise CertificateConnectionError(
                f"Unexpected data after {self.protocol} StartTLS reply"
            )


def _refused(session: PlaintextSession, response: str) -> CertificateConnectionError:
    return CertificateConnectionError(
        f"{session.protocol} StartTLS refused by server: {response}"
    )


def _smtp_family(session: PlaintextSession, host: str, hello: str):
    code, lines = session.read_reply()
    if code != 220:
        raise _refused(session, lines[-1])

    session.send_line(f"{hello} {CLIENT_NAME}")
    code, lines = session.read_reply()
    if code != 250:
        raise _refused(session, lines[-1])

    capabilities = {line[4:].strip().split(' ')[0].upper() for line in lines}
    if 'STARTTLS' not in capabilities:
        raise CertificateConnectionError(
            f"{session.protocol} server does not advertise STARTTLS"
        )

    session.send_line("STARTTLS")
    code, lines = session.read_reply()
    if code != 220:
        raise _refused(session, lines[-1])


def _smtp(session: PlaintextSession, host: str):
    """SMTP: EHLO + STARTTLS"""
    _smtp_family(session, host, "EHLO")


def _lmtp(session: PlaintextSession, host: str):
    """LMTP: LHLO + STARTTLS"""
    _smtp_family(session, host, "LHLO")


def _imap(session: PlaintextSession, host: str):
    """IMAP: 带标签的STARTTLS命令"""
    greeting = session.read_line()
    if not greeting.upper().startswith('* OK'):
        raise _refused(session, greeting)

    tag = "a001"
    session.send_line(f"{tag} STARTTLS")
    while True:
        line = session.read_line()
        if line.startswith(tag + ' '):
            break

    if not line[len(tag) + 1:].upper().startswith('OK'):
        raise _refused(session, line)


def _pop3(session: PlaintextSession, host: str):
    """POP3: STLS"""
    greeting = session.read_line()
    if not greeting.startswith('+OK'):
        raise _refused(session, greeting)

    session.send_line("STLS")
    response = session.read_line()
    if not response.startswith('+OK'):
        raise _refused(session, response)


def _ftp(session: PlaintextSession, host: str):
    """FTP: AUTH TLS"""
    code, lines = session.read_reply()
    if code != 220:
        raise _refused(session, lines[-1])

    session.send_line("AUTH TLS")
    code, lines = session.read_reply()
    if code != 234:
        raise _refused(session, lines[-1])


def _xmpp(session: PlaintextSession, host: str):
    """XMPP: 流头 + <starttls/>"""
    session.send_raw(
        (
            "<?xml version='1.0'?>"
            f"<stream:stream to='{host}' xmlns='jabber:client' "
            "xmlns:stream='http://etherx.jabber.org/streams' version='1.0'>"
        ).encode('utf-8')
    )

    features = session.read_until(b'</stream:features>')
    if b'<starttls' not in features:
        raise CertificateConnectionError("xmpp server does not advertise STARTTLS")

    session.send_raw(b"<starttls xmlns='urn:ietf:params:xml:ns:xmpp-tls'/>")
    response = session.read_until(b'<proceed', b'<failure')
    if response.endswith(b'<failure'):
        raise _refused(session, "<failure/>")

    # 读完 <proceed .../> 元素的剩余部分
    session.read_until(b'>')


def _postgres(session: PlaintextSession, host: str):
    """PostgreSQL: SSLRequest"""
    session.send_raw(POSTGRES_SSL_REQUEST)
    response = session.read_exact(1)
    if response != b'S':
        raise _refused(session, repr(response))


_HANDLERS: Dict[str, Callable[[PlaintextSession, str], None]] = {
    'smtp': _smtp,
    'lmtp': _lmtp,
    'imap': _imap,
    'pop3': _pop3,
    'ftp': _ftp,
    'xmpp': _xmpp,
    'postgres': _postgres,
}


def supported_protocols() -> List[str]:
    """
    获取支持的STARTTLS协议列表

    Returns:
        List[str]: 协议名称
    """
    return sorted(_HANDLERS)


def is_supported(protocol: str) -> bool:
    """判断协议名称是否受支持"""
    return protocol.strip().lower() in _HANDLERS


def upgrade(sock: socket.socket, protocol: str, host: str):
    """
    在已连接的套接字上执行STARTTLS明文协商

    Args:
        sock: 已连接的套接字
        protocol: 协议名称
        host: 目标主机（部分协议需要）

    Raises:
        ConfigurationError: 不支持的协议
        CertificateConnectionError: 协商失败
    """
    name = protocol.strip().lower()
    handler = _HANDLERS.get(name)
    if handler is None:
        raise ConfigurationError(
            f"Unsupported StartTLS protocol: {protocol} "
            f"(supported: {', '.join(supported_protocols())})"
        )

    session = PlaintextSession(sock, name)
    handler(session, host)
    session.ensure_drained()
    logger.debug(f"{name} StartTLS协商完成，开始TLS握手")
