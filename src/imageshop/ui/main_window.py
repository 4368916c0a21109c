from __future__ import annotations

import logging
import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from imageshop.app.config import ServiceConfig
from imageshop.app.controller import WorkflowController
from imageshop.app.downloads import DownloadSaver
from imageshop.app.logging_setup import configure_logging
from imageshop.app.state import Session
from imageshop.core.errors import WorkflowError
from imageshop.core.models import Adjustment, OutputFormat, Phase
from imageshop.service.client import ImageServiceClient
from imageshop.ui.async_runner import AsyncRunner
from imageshop.ui.image_canvas import ImageCanvas

logger = logging.getLogger(__name__)

_BUSY_MESSAGES = {
    Phase.UPLOADING: "Uploading…",
    Phase.PROCESSING: "Processing…",
    Phase.EXPORTING: "Downloading…",
}


class TkNotifier:
    """Shows controller outcomes in the status bar and message boxes, on the Tk thread."""

    def __init__(self, app: "ImageShopApp"):
        self.app = app

    def success(self, message: str) -> None:
        self.app.master.after(0, lambda: self.app.set_status(message))

    def warning(self, message: str) -> None:
        self.app.master.after(0, lambda: self.app.show_warning(message))

    def error(self, message: str) -> None:
        def show() -> None:
            self.app.set_status(message.splitlines()[0])
            messagebox.showerror("Image Processor", message)
        self.app.master.after(0, show)


class ImageShopApp(ttk.Frame):
    """Image Processor window: upload, adjust, apply, download."""

    def __init__(self, master: tk.Tk, config: ServiceConfig):
        super().__init__(master)
        self.master = master
        self.service_config = config

        self.client = ImageServiceClient(config.base_url, timeout=config.timeout)
        self.controller = WorkflowController(
            self.client,
            DownloadSaver(config.download_dir),
            notifier=TkNotifier(self),
        )
        self.runner = AsyncRunner(post=lambda fn: self.master.after(0, fn)).start()

        self._build_style()
        self._build_layout()
        self._bind_shortcuts()

        self.controller.add_listener(self._on_session_changed)
        self.master.protocol("WM_DELETE_WINDOW", self.on_close)

        self.set_status(f"Ready. Service: {config.base_url}")
        self._refresh_controls()

    @property
    def session(self) -> Session:
        return self.controller.session

    # ---------- UI construction ----------

    def _build_style(self) -> None:
        style = ttk.Style(self.master)
        if "clam" in style.theme_names():
            style.theme_use("clam")

    def _build_layout(self) -> None:
        self.pack(fill="both", expand=True)

        # Top toolbar
        toolbar = ttk.Frame(self, padding=(10, 8))
        toolbar.pack(side="top", fill="x")

        self.btn_upload = ttk.Button(toolbar, text="Upload", command=self.on_upload)
        self.btn_apply = ttk.Button(toolbar, text="Apply Changes", command=self.on_apply)
        self.btn_jpeg = ttk.Button(toolbar, text="Download as JPEG", command=lambda: self.on_download(OutputFormat.JPEG))
        self.btn_png = ttk.Button(toolbar, text="Download as PNG", command=lambda: self.on_download(OutputFormat.PNG))
        self.btn_reset = ttk.Button(toolbar, text="Reset", command=self.on_reset)

        self.btn_upload.pack(side="left")
        ttk.Separator(toolbar, orient="vertical").pack(side="left", fill="y", padx=8)
        self.btn_apply.pack(side="left")
        self.btn_jpeg.pack(side="left", padx=(6, 0))
        self.btn_png.pack(side="left", padx=(6, 0))
        self.btn_reset.pack(side="left", padx=(12, 0))

        self.progress = ttk.Progressbar(toolbar, mode="indeterminate", length=120)
        self.progress.pack(side="right")

        main = ttk.PanedWindow(self, orient="horizontal")
        main.pack(side="top", fill="both", expand=True, padx=10, pady=(0, 10))

        lf_orig = ttk.LabelFrame(main, text="Original", padding=8)
        self.original_canvas = ImageCanvas(lf_orig)
        self.original_canvas.pack(fill="both", expand=True)
        self.original_meta = ttk.Label(lf_orig, text="No file loaded.")
        self.original_meta.pack(side="bottom", anchor="w", pady=(6, 0))
        main.add(lf_orig, weight=1)

        right = ttk.PanedWindow(main, orient="vertical")
        main.add(right, weight=1)

        lf_proc = ttk.LabelFrame(right, text="Processed Preview", padding=8)
        self.processed_canvas = ImageCanvas(lf_proc, placeholder="Not processed yet")
        self.processed_canvas.pack(fill="both", expand=True)
        self.processed_meta = ttk.Label(lf_proc, text="Not processed yet.")
        self.processed_meta.pack(side="bottom", anchor="w", pady=(6, 0))
        right.add(lf_proc, weight=3)

        settings = ttk.LabelFrame(right, text="Adjustments", padding=8)
        right.add(settings, weight=1)
        settings.columnconfigure(1, weight=1)

        adj = self.session.adjustment
        self.var_brightness = tk.DoubleVar(value=adj.brightness)
        self.var_contrast = tk.DoubleVar(value=adj.contrast)
        self.var_rotation = tk.IntVar(value=adj.rotation_degrees)

        self.lbl_brightness = self._add_slider(settings, 0, "Brightness", self.var_brightness, 0.0, 2.0)
        self.lbl_contrast = self._add_slider(settings, 1, "Contrast", self.var_contrast, 0.0, 2.0)
        self.lbl_rotation = self._add_slider(settings, 2, "Rotation", self.var_rotation, 0, 360)

        self.btn_defaults = ttk.Button(settings, text="Restore defaults", command=self.on_restore_defaults)
        self.btn_defaults.grid(row=3, column=0, sticky="w", pady=(8, 0))
        self._update_slider_labels()

        # Status bar
        status = ttk.Frame(self, padding=(10, 6))
        status.pack(side="bottom", fill="x")

        self.status_var = tk.StringVar(value="Ready.")
        ttk.Label(status, textvariable=self.status_var).pack(side="left")

    def _add_slider(self, parent, row: int, label: str, var: tk.Variable, lo: float, hi: float) -> ttk.Label:
        ttk.Label(parent, text=f"{label}:").grid(row=row, column=0, sticky="w", pady=3)
        scale = ttk.Scale(parent, from_=lo, to=hi, variable=var, command=lambda _v: self.on_adjustment_changed())
        scale.grid(row=row, column=1, sticky="ew", pady=3, padx=(6, 6))
        value_label = ttk.Label(parent, width=6)
        value_label.grid(row=row, column=2, sticky="e", pady=3)
        return value_label

    def _bind_shortcuts(self) -> None:
        self.master.bind_all("<Control-o>", lambda e: self.on_upload())
        self.master.bind_all("<Command-o>", lambda e: self.on_upload())

        self.master.bind_all("<Control-r>", lambda e: self.on_apply())
        self.master.bind_all("<Command-r>", lambda e: self.on_apply())

        self.master.bind_all("<Control-s>", lambda e: self.on_download(OutputFormat.PNG))
        self.master.bind_all("<Command-s>", lambda e: self.on_download(OutputFormat.PNG))

    # ---------- Utilities ----------

    def set_status(self, text: str) -> None:
        self.status_var.set(text)

    def show_warning(self, message: str) -> None:
        self.set_status(message)
        messagebox.showwarning("Image Processor", message)

    def _on_session_changed(self, _session: Session) -> None:
        # Called on the loop thread
        self.master.after(0, self._refresh_controls)

    def _refresh_controls(self) -> None:
        s = self.session
        if s.busy:
            for btn in (self.btn_upload, self.btn_apply, self.btn_jpeg, self.btn_png, self.btn_reset):
                btn.state(["disabled"])
            self.set_status(_BUSY_MESSAGES[s.phase])
            self.progress.start(12)
            return

        self.progress.stop()
        self.btn_upload.state(["!disabled"])
        self.btn_reset.state(["!disabled"])
        self.btn_apply.state(["!disabled"] if s.can_apply else ["disabled"])
        for btn in (self.btn_jpeg, self.btn_png):
            btn.state(["!disabled"] if s.can_export else ["disabled"])

    def _current_adjustment(self) -> Adjustment:
        return Adjustment(
            brightness=round(float(self.var_brightness.get()), 1),
            contrast=round(float(self.var_contrast.get()), 1),
            rotation_degrees=int(round(float(self.var_rotation.get()))),
        )

    def _update_slider_labels(self) -> None:
        adj = self._current_adjustment()
        self.lbl_brightness.configure(text=f"{adj.brightness:.1f}")
        self.lbl_contrast.configure(text=f"{adj.contrast:.1f}")
        self.lbl_rotation.configure(text=f"{adj.rotation_degrees}°")

    def _report(self, err: BaseException) -> None:
        if isinstance(err, WorkflowError):
            self.show_warning(str(err))
        else:
            logger.error("Unexpected failure", exc_info=err)
            messagebox.showerror("Image Processor", str(err))

    # ---------- Upload ----------

    def on_upload(self) -> None:
        path = filedialog.askopenfilename(
            title="Select an image",
            filetypes=[("Images", "*.png *.jpg *.jpeg"), ("All files", "*.*")],
        )
        if not path:
            return

        def done(reference, err) -> None:
            if err is not None:
                self._report(err)
                return
            if reference is None:
                return
            source = self.session.source
            self.processed_canvas.clear("Not processed yet")
            self.processed_meta.configure(text="Not processed yet.")
            try:
                pil = self.original_canvas.set_bytes(source.data)
            except (OSError, ValueError) as e:
                self.original_meta.configure(text=f"File: {source.filename}   (preview unavailable: {e})")
                return
            self.original_meta.configure(text=f"File: {source.filename}   Size: {pil.width}x{pil.height}")

        self.runner.submit(self.controller.upload(path), done)

    # ---------- Apply ----------

    def on_adjustment_changed(self) -> None:
        self._update_slider_labels()
        self.runner.call(self.controller.set_adjustment, self._current_adjustment())

    def on_apply(self) -> None:
        def done(reference, err) -> None:
            if err is not None:
                self._report(err)
            elif reference is not None:
                self._load_processed_preview(reference)

        self.runner.submit(self.controller.apply_edits(self._current_adjustment()), done)

    def _load_processed_preview(self, reference: str) -> None:
        def done(data, err) -> None:
            if err is not None:
                logger.warning("Preview fetch failed: %s", err)
                self.processed_canvas.clear("Preview unavailable")
                self.processed_meta.configure(text=f"Processed: {reference}")
                return
            try:
                pil = self.processed_canvas.set_bytes(data)
            except (OSError, ValueError) as e:
                logger.warning("Preview decode failed: %s", e)
                self.processed_canvas.clear("Preview unavailable")
                return
            self.processed_meta.configure(text=f"Processed: {reference}   Size: {pil.width}x{pil.height}")

        self.runner.submit(self.client.fetch_image(reference), done)

    # ---------- Download ----------

    def on_download(self, fmt: OutputFormat) -> None:
        def done(path, err) -> None:
            if err is not None:
                self._report(err)
            elif path is not None:
                self.set_status(f"Saved: {path}")

        self.runner.submit(self.controller.export(fmt), done)

    # ---------- Reset / defaults ----------

    def on_reset(self) -> None:
        def done(_result, err) -> None:
            if err is not None:
                self._report(err)
                return
            self._sync_sliders()
            self.original_canvas.clear()
            self.processed_canvas.clear("Not processed yet")
            self.original_meta.configure(text="No file loaded.")
            self.processed_meta.configure(text="Not processed yet.")
            self.set_status("Reset complete.")

        self.runner.call(self.controller.reset, on_done=done)

    def on_restore_defaults(self) -> None:
        def done(_result, err) -> None:
            if err is not None:
                self._report(err)
                return
            self._sync_sliders()
            self.set_status("Defaults restored.")

        self.runner.call(self.controller.restore_defaults, on_done=done)

    def _sync_sliders(self) -> None:
        adj = self.session.adjustment
        self.var_brightness.set(adj.brightness)
        self.var_contrast.set(adj.contrast)
        self.var_rotation.set(adj.rotation_degrees)
        self._update_slider_labels()

    def on_close(self) -> None:
        try:
            self.runner.submit(self.client.close()).result(timeout=2.0)
        except Exception:
            logger.debug("Client close did not finish cleanly", exc_info=True)
        self.runner.stop()
        self.master.destroy()


def run(config: Optional[ServiceConfig] = None) -> None:
    root = tk.Tk()
    root.title("Image Processor")
    root.geometry("1100x700")
    root.minsize(900, 600)

    ImageShopApp(root, config or ServiceConfig.from_env())

    root.mainloop()


def main() -> None:
    configure_logging()
    run(ServiceConfig.from_env())
