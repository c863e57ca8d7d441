"""
Orchestrator — wires the application core's message channel to the
scene pipeline.

Workflow:
1. The core announces a model (``startGui``, or an imported snapshot)
2. Each layer is classified and its scene built into the session cache
3. Later notifications rebuild, resize or recolour individual layers
4. Export requests read the cache and produce JSON, images or bundles

Failures are caught here, at the pipeline boundary, and turned into one
outbound failure notification; the rest of the session carries on.
"""

from __future__ import annotations

import asyncio
import copy
import functools
import inspect
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from channel import MessageChannel, Subscription
from config import settings
from errors import BatchBusyError, BuildError, EncodeError, SceneSyncError, TranscodeError
from exporter.batch import BatchSequencer
from exporter.bundle import AssetFetcher, BundleArtifact, Fetcher, export_bundle
from exporter.image import CaptureRequest, ImageArtifact, export_image, save_artifact
from exporter.snapshot import ExportSnapshot, export_snapshot
from layers.kinds import LayerKind, classify, is_mesh_field
from layers.model import GlobalConfig, Model
from layers.transcoder import from_wire, parse_layer_model, to_wire, to_wire_json
from randomize import randomize_model
from scenes import gradients
from scenes.builders import build_scene, is_resizable, update_scene
from scenes.renderer import PlaywrightSurface, Surface
from scenes.state import MeshScene, MetaballScene, SceneState
from session import Session
from timing import AsyncioScheduler, Scheduler, make_debouncer, next_frame

logger = logging.getLogger(__name__)


class FuzzPolicy(str, Enum):
    """Where a rebuild takes its per-vertex variation from."""
    FRESH = "fresh"                  # always draw new variation
    PREFER_CACHED = "prefer_cached"  # reuse the cached scene's variation when it fits


# Per-parameter notifications from the control panel, payload {layer, value}
LAYER_PORTS = frozenset({
    "changeLightSpeed", "changeFacesX", "changeFacesY", "changeVignette",
    "changeIris", "changeFssRenderMode", "changeOpacity", "changeAmplitude",
    "shiftColor", "changeVariety", "changeOrbit", "changeWGLBlend",
    "changeHtmlBlend", "refreshFluid", "requestRegenerateFluidGradients",
})
_ROUNDED_PORTS = frozenset({"changeLightSpeed", "changeFacesX", "changeFacesY"})
# Notifications whose payload is the bare layer index
TOGGLE_PORTS = frozenset({"turnOn", "turnOff", "mirrorOn", "mirrorOff"})


@dataclass
class OrchestratorState:
    """Results of the most recent operations, for callers and tests."""
    paused: bool = False
    last_export: Optional[ExportSnapshot] = None
    last_image: Optional[ImageArtifact] = None
    last_bundle: Optional[BundleArtifact] = None
    errors: list[str] = field(default_factory=list)


class SceneOrchestrator:
    """
    Connects the channel, the session's scene cache and the exporters.

    Args:
        channel: Message channel shared with the application core.
        session: Session holding the cache (a fresh one by default).
        surface: Painting surface for image export.
        fetcher: Bundle asset fetcher.
        scheduler: Timer source for resize debouncing.
        builder: Scene builder, ``build_scene`` unless replaced.
        fuzz_policy: Variation reuse policy (settings.FUZZ_POLICY).
        viewport: Callable returning the current window size.
        sleep: Awaitable sleep used between batch steps.
        frame: Awaitable frame boundary used by image export.
        seed: Fixed seed for every build (``None`` for random).
        output_dir: Where artifacts are written (settings.OUTPUTS_DIR).
    """

    def __init__(
        self,
        channel: MessageChannel,
        session: Optional[Session] = None,
        surface: Optional[Surface] = None,
        fetcher: Optional[Fetcher] = None,
        scheduler: Optional[Scheduler] = None,
        builder: Callable[..., Union[SceneState, Awaitable[SceneState]]] = build_scene,
        fuzz_policy: Optional[Union[FuzzPolicy, str]] = None,
        viewport: Optional[Callable[[], tuple[int, int]]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        frame: Callable[[], Awaitable[None]] = next_frame,
        seed: Optional[int] = None,
        output_dir: Optional[Path] = None,
    ):
        self.channel = channel
        self.session = session or Session()
        self.surface = surface or PlaywrightSurface(self.session.cache, self.current_config)
        self.fetcher = fetcher or AssetFetcher()
        self.scheduler = scheduler or AsyncioScheduler()
        self.builder = builder
        self.fuzz_policy = FuzzPolicy(fuzz_policy or settings.FUZZ_POLICY)
        self.viewport = viewport or (lambda: (settings.CANVAS_WIDTH, settings.CANVAS_HEIGHT))
        self.frame = frame
        self.seed = seed
        self.output_dir = output_dir
        self.player = False
        self.state = OrchestratorState()
        self.batch = BatchSequencer(channel, capture=self.save_png, sleep=sleep)
        self._ports: dict[str, Subscription] = {}

    @property
    def cache(self):
        return self.session.cache

    def current_config(self) -> GlobalConfig:
        model = self.session.model
        return model.config if model is not None else GlobalConfig()

    # ── Lifecycle ────────────────────────────────────────────────────

    def _subscribe_ports(self, ports: dict[str, Callable[[Any], Any]]) -> None:
        for name, handler in ports.items():
            if name not in self._ports:
                self._ports[name] = self.channel.subscribe(name, handler)

    def start(self) -> None:
        """Editor mode: listen to the core and announce readiness."""
        self._subscribe_ports({
            "startGui": self._on_start_gui,
            "buildFluidGradientTextures": self._on_build_fluid_gradients,
            "updateNativeMetaballs": self._on_update_metaballs,
            "requestWindowResize": self._on_window_resize,
            "requestFitToWindow": self._on_fit_to_window,
            "export_": self._on_export,
            "exportZip_": self._on_export_zip,
            "triggerSavePng": self._on_trigger_save_png,
            "nextBatchStep": self._on_next_batch_step,
            "saveBatch": self._on_save_batch,
            "requestRandomize": self._on_request_randomize,
        })
        self.channel.send("bang")

    async def start_player(self, snapshot: Union[str, dict[str, Any], Model]) -> None:
        """Player mode: replay an exported snapshot with its own variation."""
        self.player = True
        self.fuzz_policy = FuzzPolicy.PREFER_CACHED
        self._subscribe_ports({
            "requestFssRebuild": self._on_request_fss_rebuild,
            "buildFluidGradientTextures": self._on_build_fluid_gradients,
            "updateNativeMetaballs": self._on_update_metaballs,
            "requestWindowResize": self._on_window_resize,
        })
        await self.import_scene(snapshot)

    def stop(self) -> None:
        for subscription in self._ports.values():
            subscription.unsubscribe()
        self._ports.clear()
        self.batch.cancel()
        self.session.teardown()

    def remove_layer(self, index: int) -> None:
        self.session.remove_layer(index)

    # ── Scene building ───────────────────────────────────────────────

    def _reusable_fuzz(self, index: int) -> Optional[list[dict[str, Any]]]:
        if self.fuzz_policy is not FuzzPolicy.PREFER_CACHED:
            return None
        cached = self.cache.get(index)
        if isinstance(cached, MeshScene):
            return cached.export_fuzz()
        return None

    async def rebuild_layer(
        self,
        index: int,
        layer_model: Optional[dict[str, Any]] = None,
        prior_fuzz: Optional[list[dict[str, Any]]] = None,
    ) -> Optional[SceneState]:
        """
        Rebuild the scene of layer ``index`` and commit it to the cache.

        Returns the new scene, or ``None`` when the build failed (the old
        scene stays cached) or was superseded by a newer rebuild.
        """
        model = self.session.model
        layer = model.layer(index) if model is not None else None
        if layer is None:
            logger.warning("Rebuild requested for unknown layer %d", index)
            return None
        target = layer if layer_model is None else replace(layer, model=layer_model)

        generation = self.cache.begin(index)
        fuzz = prior_fuzz if prior_fuzz is not None else self._reusable_fuzz(index)
        await asyncio.sleep(0)
        try:
            scene = self.builder(model.config, target, fuzz, self.seed)
            if inspect.isawaitable(scene):
                scene = await scene
        except BuildError as exc:
            exc.layer = index
            self._report("buildFailed", exc)
            return None

        if not self.cache.commit(index, generation, scene):
            return None
        if scene.kind is LayerKind.MESH_FIELD:
            self.channel.send("rebuildFss", {"value": scene, "layer": index})
        return scene

    def _bind_resize(self, index: int) -> None:
        debouncer = make_debouncer(
            settings.RESIZE_DEBOUNCE_MS,
            functools.partial(self._resize_layer, index),
            self.scheduler,
        )
        self.session.set_debouncer(index, debouncer)

    def _resize_layer(self, index: int, size: tuple[int, int]) -> None:
        prior = self.cache.get(index)
        if prior is None or not is_resizable(prior.kind):
            return
        try:
            self.cache.refresh(index, update_scene(tuple(size), prior))
        except BuildError as exc:
            exc.layer = index
            self._report("buildFailed", exc)

    async def _build_layers(self, model: Model) -> None:
        for index, layer in enumerate(model.layers):
            kind = classify(layer)
            if kind is LayerKind.MESH_FIELD:
                await self.rebuild_layer(index, prior_fuzz=layer.scene_fuzz)
            elif kind is LayerKind.METABALL_FIELD:
                await self.rebuild_layer(index)
                self._bind_resize(index)
            else:
                self.session.drop_debouncer(index)

    async def import_scene(self, state: Union[str, dict[str, Any], Model]) -> Optional[Model]:
        """Send a snapshot to the core and rebuild its scenes with their fuzz."""
        try:
            model = copy.deepcopy(state) if isinstance(state, Model) else from_wire(state)
        except TranscodeError as exc:
            self._report("importFailed", exc, message=TranscodeError.user_message)
            return None
        self.session.model = model
        self.channel.send("import_", to_wire_json(model))
        await self._build_layers(model)
        self._pause()
        return model

    # ── Inbound handlers ─────────────────────────────────────────────

    async def _on_start_gui(self, payload: Any) -> None:
        model_wire = payload[0] if isinstance(payload, (list, tuple)) else payload
        try:
            model = from_wire(model_wire)
        except TranscodeError as exc:
            self._report("importFailed", exc, message=TranscodeError.user_message)
            return

        previous = self.session.model
        if previous is not None:
            for index in range(len(model.layers), len(previous.layers)):
                self.session.remove_layer(index)
        # A repeated startGui replaces the session's handlers instead of stacking them
        self.session.release_subscriptions()
        self.session.model = model
        self.session.track(self.channel.subscribe("requestFssRebuild", self._on_request_fss_rebuild))
        await self._build_layers(model)

    async def _on_request_fss_rebuild(self, payload: dict[str, Any]) -> None:
        index = int(payload["layer"])
        try:
            model = from_wire(payload["model"])
            value = payload.get("value")
            layer_model = parse_layer_model(value) if value is not None else None
        except TranscodeError as exc:
            exc.layer = index
            self._report("buildFailed", exc)
            return

        self.session.model = model
        layer = model.layer(index)
        if layer is not None and is_mesh_field(layer):
            await self.rebuild_layer(index, layer_model=layer_model)
        if self.player:
            self.channel.send("hideControls")

    def _on_build_fluid_gradients(self, payload: Any) -> None:
        index, layer_model = payload
        try:
            scene = gradients.build(self.current_config(), parse_layer_model(layer_model))
        except SceneSyncError as exc:
            exc.layer = index
            self._report("buildFailed", exc)
            return
        self.cache.set(index, scene)
        self.channel.send("loadFluidGradientTextures", {"value": scene, "layer": index})

    def _on_update_metaballs(self, payload: Any) -> None:
        try:
            index, colors = payload
            colors = list(colors)
        except (TypeError, ValueError) as exc:
            self._report("buildFailed", BuildError(f"Invalid metaball update: {exc}"))
            return
        prior = self.cache.get(index)
        if not isinstance(prior, MetaballScene):
            logger.warning("No metaball scene cached for layer %d", index)
            return
        try:
            self.cache.refresh(index, update_scene(prior.size, prior, colors=colors))
        except SceneSyncError as exc:
            exc.layer = index
            self._report("buildFailed", exc)

    def _on_window_resize(self, size: Any) -> None:
        width, height = size
        for debouncer in list(self.session.debouncers.values()):
            debouncer((int(width), int(height)))

    def _on_fit_to_window(self, _payload: Any = None) -> None:
        self.channel.send("setCustomSize", {"presetCode": None, "viewport": list(self.viewport())})

    def _on_export(self, exported_state: Any) -> Optional[ExportSnapshot]:
        self._pause()
        try:
            snapshot = export_snapshot(exported_state, self.cache, self.seed)
        except SceneSyncError as exc:
            self._report("exportFailed", exc)
            return None
        self.state.last_export = snapshot
        self.channel.send("exportCode", snapshot.json)
        return snapshot

    async def _on_export_zip(self, exported_state: Any) -> Optional[BundleArtifact]:
        self._pause()
        try:
            bundle = await export_bundle(exported_state, self.cache, self.fetcher, self.seed)
            self._save(bundle)
        except SceneSyncError as exc:
            self._report("exportFailed", exc, message="Failed to create .zip")
            return None
        self.state.last_bundle = bundle
        return bundle

    async def save_png(self, request: CaptureRequest) -> Optional[ImageArtifact]:
        """Export one still image; failures are reported, not raised."""
        try:
            artifact = await export_image(request, self.surface, frame=self.frame)
            self._save(artifact)
        except SceneSyncError as exc:
            self._report("exportFailed", exc)
            return None
        self.state.last_image = artifact
        return artifact

    async def _on_trigger_save_png(self, update: dict[str, Any]) -> Optional[ImageArtifact]:
        try:
            request = CaptureRequest.from_dict(update)
        except (KeyError, TypeError, ValueError) as exc:
            self._report("exportFailed", TranscodeError(f"Invalid capture request: {exc}"))
            return None
        return await self.save_png(request)

    async def _on_next_batch_step(self, update: dict[str, Any]) -> Any:
        return await self.batch.capture(update)

    def _on_save_batch(self, sizes: list[list[int]]) -> None:
        self.start_batch(sizes)

    def start_batch(self, sizes: list[Any]) -> Optional[asyncio.Task]:
        try:
            return self.batch.start(sizes)
        except BatchBusyError as exc:
            self._report("exportFailed", exc)
            return None

    def _on_request_randomize(self, model_wire: Any) -> Optional[Model]:
        try:
            model = from_wire(model_wire)
        except TranscodeError as exc:
            self._report("importFailed", exc, message=TranscodeError.user_message)
            return None
        randomized = randomize_model(model, seed=self.seed)
        self.apply_randomizer(randomized)
        return randomized

    # ── Outbound notifications ───────────────────────────────────────

    def apply_randomizer(self, model: Model) -> None:
        self.channel.send("applyRandomizer", to_wire(model))

    def notify_change(self, port: str, index: int, value: Any = None) -> None:
        """Per-parameter change of one layer."""
        if port not in LAYER_PORTS:
            raise ValueError(f"Unknown layer port: {port}")
        payload: dict[str, Any] = {"layer": index}
        if value is not None:
            payload["value"] = round(value) if port in _ROUNDED_PORTS else value
        self.channel.send(port, payload)

    def notify_toggle(self, port: str, index: int) -> None:
        if port not in TOGGLE_PORTS:
            raise ValueError(f"Unknown toggle port: {port}")
        self.channel.send(port, index)

    def set_custom_size(self, value: str) -> None:
        """Parse ``"width,height"``; non-positive sizes fall back to the viewport."""
        try:
            width, height = (int(part) for part in value.split(",")[:2])
        except ValueError:
            width = height = 0
        if width > 0 and height > 0:
            self.channel.send("setCustomSize", [width, height])
        else:
            self.channel.send("setCustomSize", list(self.viewport()))

    # ── Helpers ──────────────────────────────────────────────────────

    def _pause(self) -> None:
        self.state.paused = True
        self.channel.send("pause")

    def _save(self, artifact: Any) -> None:
        try:
            path = save_artifact(artifact, self.output_dir)
        except OSError as exc:
            raise EncodeError(f"Failed to write {artifact.filename}: {exc}") from exc
        logger.info("Saved %s", path)

    def _report(self, port: str, exc: SceneSyncError, message: Optional[str] = None) -> None:
        message = message or exc.user_message
        logger.error("%s: %s", port, exc)
        self.state.errors.append(message)
        self.channel.send(port, {"message": message, "layer": exc.layer})
