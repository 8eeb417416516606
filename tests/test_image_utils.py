"""
test_image_utils.py

Tests for URL resolution, format detection, data URLs and dimension loading.
"""

import base64
import os
import struct
import sys
import unittest
import zlib
from io import BytesIO
from unittest import mock

import requests
from PIL import Image

# Add the parent directory to Python path when running tests directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_utils import (
    decode_data_url,
    detect_format,
    extract_domain,
    fetch_image_bytes,
    filename_of,
    load_image_dimensions,
    raster_dimensions,
    require_page_url,
    svg_dimensions,
    to_absolute_url,
)
from models import ImageFormat, InvalidPageUrlError

PAGE = 'https://example.com/news/story.html'


def png_bytes(width, height, color='red'):
    output = BytesIO()
    Image.new('RGB', (width, height), color).save(output, format='PNG')
    return output.getvalue()


class TestAbsoluteUrls(unittest.TestCase):

    def test_absolute_is_unchanged(self):
        self.assertEqual(to_absolute_url('https://cdn.example.com/a.jpg', PAGE), 'https://cdn.example.com/a.jpg')

    def test_protocol_relative(self):
        self.assertEqual(to_absolute_url('//cdn.example.com/a.jpg', PAGE), 'https://cdn.example.com/a.jpg')

    def test_root_relative(self):
        self.assertEqual(to_absolute_url('/img/a.jpg', PAGE), 'https://example.com/img/a.jpg')

    def test_document_relative(self):
        self.assertEqual(to_absolute_url('img/a.jpg', PAGE), 'https://example.com/news/img/a.jpg')

    def test_bad_page_url_yields_none(self):
        self.assertIsNone(to_absolute_url('img/a.jpg', 'not a url'))
        self.assertIsNone(to_absolute_url('', PAGE))

    def test_require_page_url_raises(self):
        with self.assertRaises(InvalidPageUrlError):
            require_page_url('example.com/no-scheme')
        self.assertEqual(require_page_url(PAGE).hostname, 'example.com')


class TestFormatsAndNames(unittest.TestCase):

    def test_detect_format(self):
        self.assertEqual(detect_format('https://x.com/a.svg'), ImageFormat.SVG)
        self.assertEqual(detect_format('https://x.com/a.svg?v=2'), ImageFormat.SVG)
        self.assertEqual(detect_format('https://x.com/a.PNG'), ImageFormat.PNG)
        self.assertEqual(detect_format('https://x.com/a.webp'), ImageFormat.JPG)
        self.assertEqual(detect_format('data:image/png;base64,AAAA'), ImageFormat.PNG)

    def test_filename_of_strips_query(self):
        self.assertEqual(filename_of('https://x.com/path/Hero-Image.JPG?w=800'), 'hero-image.jpg')

    def test_extract_domain(self):
        self.assertEqual(extract_domain('https://www.example.com/x'), 'example.com')
        self.assertEqual(extract_domain('https://blog.example.com/x'), 'blog.example.com')


class TestDataUrls(unittest.TestCase):

    def test_decode_base64_png(self):
        raw = png_bytes(20, 10)
        src = 'data:image/png;base64,' + base64.b64encode(raw).decode('ascii')
        mime, data = decode_data_url(src)
        self.assertEqual(mime, 'image/png')
        self.assertEqual(data, raw)

    def test_decode_rejects_garbage(self):
        self.assertIsNone(decode_data_url('not-a-data-url'))


class TestDimensions(unittest.TestCase):

    def test_svg_width_height(self):
        self.assertEqual(svg_dimensions(b'<svg xmlns="http://www.w3.org/2000/svg" width="640px" height="320"/>'), (640, 320))

    def test_svg_view_box(self):
        self.assertEqual(svg_dimensions(b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 800 400"/>'), (800, 400))

    def test_unsized_svg_defaults(self):
        self.assertEqual(svg_dimensions(b'<svg xmlns="http://www.w3.org/2000/svg"/>'), (300, 150))

    def test_raw_bytes(self):
        self.assertEqual(load_image_dimensions(png_bytes(33, 17)), (33, 17))

    @mock.patch('image_utils.requests.get')
    def test_url_is_fetched(self, mock_get):
        response = mock.Mock(content=png_bytes(640, 360), headers={'Content-Type': 'image/png'})
        response.raise_for_status.return_value = None
        mock_get.return_value = response
        self.assertEqual(load_image_dimensions('https://example.com/a.png'), (640, 360))

    @mock.patch('image_utils.requests.get')
    def test_network_error_is_none(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError('down')
        self.assertIsNone(load_image_dimensions('https://example.com/a.png'))

    def test_oversized_raster_is_none(self):
        def chunk(tag, data):
            return struct.pack('>I', len(data)) + tag + data + struct.pack('>I', zlib.crc32(tag + data) & 0xffffffff)

        ihdr = struct.pack('>IIBBBBB', 20000, 10000, 8, 2, 0, 0, 0)
        forged = b'\x89PNG\r\n\x1a\n' + chunk(b'IHDR', ihdr) + chunk(b'IDAT', zlib.compress(b'')) + chunk(b'IEND', b'')
        self.assertIsNone(raster_dimensions(forged))
        self.assertIsNone(load_image_dimensions(forged))

    @mock.patch('image_utils.requests.get')
    def test_fetch_image_bytes(self, mock_get):
        response = mock.Mock(content=b'png-bytes')
        response.raise_for_status.return_value = None
        mock_get.return_value = response
        self.assertEqual(fetch_image_bytes('https://example.com/a.png'), b'png-bytes')
        self.assertEqual(mock_get.call_args[1]['headers']['Referer'], 'https://example.com/a.png')

        mock_get.side_effect = requests.exceptions.HTTPError('404')
        self.assertIsNone(fetch_image_bytes('https://example.com/a.png'))


if __name__ == '__main__':
    unittest.main()
