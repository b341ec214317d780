"""QR code rendering for short links"""

import io

import qrcode
from qrcode.exceptions import DataOverflowError

from linkshortener.dao.exceptions import ArtifactRenderError


# box_size/border tuned for ~250x250px images of typical short URLs
BOX_SIZE = 8
BORDER = 4


def render_qr_png(data: str) -> bytes:
    """Render `data` (the public short URL) as a PNG QR code

    Args:
        data: text to encode, usually the short URL.

    Returns:
        bytes: PNG image data.

    Raises:
        ArtifactRenderError: if the data can't be encoded.
    """
    qr = qrcode.QRCode(
        version=None,  # smallest version that fits the data
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=BOX_SIZE,
        border=BORDER,
    )

    try:
        qr.add_data(data)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        raise ArtifactRenderError(f'Failed to render QR code for {data!r}.') from e

    image = qr.make_image(fill_color='black', back_color='white')

    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()
