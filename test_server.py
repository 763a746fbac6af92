"""HTTP 서버 테스트 — POST /api/create."""

import json
import unittest
from io import BytesIO
from pathlib import Path

from aiohttp import FormData
from aiohttp import test_utils
from PIL import Image

from config import load_config
from renderer.fonts import FontRegistry
from server import create_app


def png_bytes(size=(64, 36), color=(30, 60, 90)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class TestCreateEndpoint(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        settings = load_config(Path("/nonexistent/config.json"))
        settings["limits"]["max_input_bytes"] = 4096
        app = create_app(settings, FontRegistry(fallback_path=""))
        self.client = test_utils.TestClient(test_utils.TestServer(app))
        await self.client.start_server()

    async def asyncTearDown(self):
        await self.client.close()

    def form(self, config=None, resolution="hd", image=None):
        data = FormData()
        if config is not None:
            data.add_field("config", json.dumps(config))
        if resolution is not None:
            data.add_field("resolution", resolution)
        if isinstance(image, bytes):
            data.add_field("image", image, filename="bg.png", content_type="image/png")
        elif image is not None:
            data.add_field("image", image)
        return data

    async def test_create_png(self):
        form = self.form({"month": 0, "year": 2025}, image=png_bytes())
        resp = await self.client.post("/api/create", data=form)
        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.content_type, "image/png")
        self.assertIn("calendar-2025-01.png", resp.headers["Content-Disposition"])
        body = await resp.read()
        with Image.open(BytesIO(body)) as img:
            self.assertEqual(img.size, (1280, 720))

    async def test_explicit_text_color_over_image(self):
        test_cases = [
            ({"month": 0, "year": 2025, "textColor": "#ff0000"}, True),
            ({"month": 0, "year": 2025, "textColor": "#ff0000", "autoTextColor": True}, False),
        ]
        for config, has_red in test_cases:
            with self.subTest(config=config):
                form = self.form(config, image=png_bytes(color=(0, 0, 0)))
                resp = await self.client.post("/api/create", data=form)
                self.assertEqual(resp.status, 200)
                with Image.open(BytesIO(await resp.read())) as img:
                    colors = {rgb for _, rgb in img.convert("RGB").getcolors(maxcolors=1 << 20)}
                self.assertEqual((255, 0, 0) in colors, has_red)

    async def test_mobile_without_image(self):
        form = self.form({"month": 11, "year": 2025, "viewMode": "mobile"})
        resp = await self.client.post("/api/create", data=form)
        self.assertEqual(resp.status, 200)
        self.assertIn("calendar-2025-12-mobile.png", resp.headers["Content-Disposition"])
        with Image.open(BytesIO(await resp.read())) as img:
            self.assertEqual(img.size, (720, 1280))

    async def test_errors(self):
        test_cases = [
            (dict(config={"textColor": "red"}), 400, "textColor"),
            (dict(config={"month": 0, "year": 2025}, resolution="8k"), 400, "resolution"),
            (dict(config={}, image="https://example.com/a.png"), 400, "image"),
            (dict(config={}, image=b"not an image"), 400, None),
            (dict(config={}, image=b"\x00" * 5000), 413, None),
            (dict(config={}, image=png_bytes((9000, 1))), 413, None),
        ]
        for kwargs, status, field in test_cases:
            with self.subTest(status=status, field=field, resolution=kwargs.get("resolution")):
                resp = await self.client.post("/api/create", data=self.form(**kwargs))
                self.assertEqual(resp.status, status)
                payload = await resp.json()
                self.assertIn("error", payload)
                if field:
                    self.assertIn(field, payload["error"])

    async def test_invalid_json_config(self):
        data = FormData()
        data.add_field("config", "{broken")
        data.add_field("resolution", "hd")
        resp = await self.client.post("/api/create", data=data)
        self.assertEqual(resp.status, 400)


if __name__ == "__main__":
    unittest.main()
