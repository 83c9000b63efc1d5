import base64
import unittest

from helpers import PNG_SIGNATURE, make_png

from appcenter.infrastructure import icons


class IconRepairTests(unittest.TestCase):
    def test_regular_png_is_returned_unchanged(self):
        data = make_png()
        self.assertFalse(icons.is_vendor_optimized_png(data))
        self.assertEqual(icons.repair(data), data)

    def test_vendor_chunk_is_stripped_and_other_chunks_kept(self):
        vendor = make_png(vendor=True)
        self.assertTrue(icons.is_vendor_optimized_png(vendor))

        repaired = icons.repair(vendor)

        self.assertNotIn(b"CgBI", repaired)
        self.assertTrue(repaired.startswith(PNG_SIGNATURE))
        self.assertEqual(repaired, make_png())

    def test_truncated_vendor_png_is_left_alone(self):
        # Cut into the IDAT checksum so that chunk runs past the buffer
        broken = make_png(vendor=True)[:-14]
        self.assertTrue(icons.is_vendor_optimized_png(broken))
        self.assertEqual(icons.repair(broken), broken)

    def test_padding_after_last_chunk_does_not_block_repair(self):
        padded = make_png(vendor=True) + b"\x00\x00"
        self.assertTrue(icons.is_vendor_optimized_png(padded))

        self.assertEqual(icons.repair(padded), make_png())

        result = icons.to_data_url(padded)
        decoded = base64.b64decode(result.data_url.split(",", 1)[1])
        self.assertNotIn(b"CgBI", decoded)

    def test_non_png_input_is_left_alone(self):
        jpeg = b"\xff\xd8\xff\xe0" + b"\x00" * 16
        self.assertEqual(icons.repair(jpeg), jpeg)


class IconDataUrlTests(unittest.TestCase):
    def test_detect_format_from_magic_bytes(self):
        self.assertEqual(icons.detect_format(b"\xff\xd8\xff"), "image/jpeg")
        self.assertEqual(icons.detect_format(make_png()), "image/png")
        self.assertEqual(icons.detect_format(b"GIF89a"), "image/gif")
        self.assertEqual(icons.detect_format(b"unknown"), "image/png")

    def test_bytes_become_png_data_url_without_vendor_chunk(self):
        result = icons.to_data_url(make_png(vendor=True))

        self.assertTrue(result.ok)
        self.assertTrue(result.data_url.startswith("data:image/png;base64,"))
        decoded = base64.b64decode(result.data_url.split(",", 1)[1])
        self.assertNotIn(b"CgBI", decoded)

    def test_existing_data_url_is_accepted(self):
        encoded = base64.b64encode(make_png()).decode("ascii")
        result = icons.to_data_url(f"data:image/png;base64,{encoded}")
        self.assertEqual(result.data_url, f"data:image/png;base64,{encoded}")

    def test_empty_or_missing_payload_reports_error(self):
        self.assertFalse(icons.to_data_url(None).ok)
        empty = icons.to_data_url(b"")
        self.assertFalse(empty.ok)
        self.assertIn("empty", empty.error)

    def test_fallback_icon_per_platform(self):
        self.assertEqual(icons.fallback_icon("ios"), icons.FALLBACK_ICONS["ios"])
        self.assertEqual(icons.fallback_icon("Android"), icons.FALLBACK_ICONS["android"])
        self.assertEqual(icons.fallback_icon(None), icons.FALLBACK_ICONS["android"])


if __name__ == "__main__":
    unittest.main()
