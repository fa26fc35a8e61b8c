import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image

from arm_submissions.utils.config import QR_SIZE, QR_MARGIN, QR_DARK, QR_LIGHT
from arm_submissions.utils.logger import get_logger


logger = get_logger("qr-code")


def render_qr_png(
    data: str,
    size: int = QR_SIZE,
    margin: int = QR_MARGIN,
    dark: str = QR_DARK,
    light: str = QR_LIGHT,
) -> bytes:
    """Encode ``data`` as a square PNG of exactly ``size`` pixels."""
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=margin,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color=dark, back_color=light)
    img = img.resize((size, size), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    logger.debug("QR rendered for %s (version %s)", data, qr.version)
    return buffer.getvalue()


def qr_data_url(data: str, **kwargs) -> str:
    png = render_qr_png(data, **kwargs)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
