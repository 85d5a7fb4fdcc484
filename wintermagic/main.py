"""
Main application for the gesture-driven tree scene.
"""
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .channel import LatestValue
from .config import load_config
from .detection import CameraPreview, DetectionLoop
from .renderer_mock import MockRenderer
from .scene import WinterScene, run_render_loop
from .types import GestureSignal, RendererProto

logger = logging.getLogger(__name__)


class WinterMagicApp:
    """Main application class wiring detection, scene, and renderer together."""

    def __init__(self, config_path: Optional[str] = None, headless: bool = False,
                 images: Sequence[str] = (), renderer: Optional[RendererProto] = None,
                 detection: Optional[DetectionLoop] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.signals: LatestValue[GestureSignal] = LatestValue()
        self.previews: LatestValue[CameraPreview] = LatestValue()

        self.scene = WinterScene(self.config, self.signals)

        # Choose renderer type
        if renderer is not None:
            self.renderer = renderer
            loader = None
        elif headless:
            self.renderer = MockRenderer()
            loader = None
        else:
            from .preview import PreviewRenderer, load_texture
            self.renderer = PreviewRenderer(self.config, self.previews)
            loader = load_texture

        self.detection = detection if detection is not None else DetectionLoop(
            self.config, self.signals, previews=self.previews)

        self.renderer.setup(self.scene.table.entities)
        if images:
            self.add_images(images, loader=loader)

        self._stop = asyncio.Event()

    def add_images(self, sources: Sequence[str], loader=None) -> None:
        entries = self.scene.add_images(sources, loader=loader)
        self.renderer.add_images(entries)

    def stop(self) -> None:
        self._stop.set()
        self.detection.stop()

    async def run(self) -> int:
        """Run detection and rendering until the renderer or the user stops."""
        logger.info("🎄 Starting %s", self.config.display.window_name)
        logger.info("  - Fist = Form Tree")
        logger.info("  - Open hand = Explode & Rotate")
        logger.info("  - Pinch = Grab Memories (move hand left/right to choose)")

        detection_task = asyncio.create_task(self.detection.run())
        try:
            frames = await run_render_loop(self.scene, self.renderer, self._stop, self.config.render.fps)
        finally:
            self.detection.stop()
            try:
                await detection_task
            finally:
                self.renderer.close()

        logger.info("Rendered %d frames", frames)
        return frames


async def main():
    """Entry point for the application."""
    args = sys.argv[1:]
    headless = "--headless" in args
    images = [arg for arg in args if not arg.startswith("--")]

    config = load_config()
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    app = WinterMagicApp(headless=headless, images=images)
    await app.run()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        # Cleanup already ran in WinterMagicApp.run() when the task was cancelled
        logger.info("Application interrupted by user")


if __name__ == "__main__":
    run()
