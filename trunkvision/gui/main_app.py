import logging
import threading
import time
import tkinter as tk
from collections import deque
from queue import Empty, Queue
from tkinter import filedialog, messagebox, simpledialog, ttk

from PIL import Image, ImageTk

from ..calibration import InvalidCalibrationInput
from ..config import (
    COLORS,
    DEFAULT_REFERENCE_LENGTH_CM,
    GUI_SETTINGS,
    MEASURE_INTERVAL_MS,
    PREVIEW_BUFFER_SIZE,
    PREVIEW_ERROR_DELAY,
    PREVIEW_MAX_WIDTH,
    PREVIEW_UPDATE_INTERVAL,
    ConfigError,
)
from ..measurement import result_texts
from ..pipeline import MeasurementSession
from ..utils.camera_utils import FrameSource
from ..utils.dxf_export import export_outline_dxf
from ..utils.image_utils import draw_measurement_overlay
from .settings_manager import SettingsManager

log = logging.getLogger(__name__)


def preview_size(width, height, max_width=PREVIEW_MAX_WIDTH):
    """Scale (width, height) down to max_width, keeping the aspect ratio"""
    if width <= max_width:
        return width, height
    scale = max_width / width
    return int(width * scale), int(height * scale)


class TrunkVisionApp:
    def __init__(self, master, frame_source, session=None, settings_manager=None):
        self.master = master
        self.master.title("Trunk Vision")
        self.master.configure(bg=COLORS['main'])

        self.frame_source = frame_source
        self.session = session or MeasurementSession()
        self.settings_manager = settings_manager or SettingsManager()

        self.frame_buffer = deque(maxlen=PREVIEW_BUFFER_SIZE)
        self.update_queue = Queue()
        self.preview_running = False
        self.preview_thread = None
        self.last_measurement = None
        self.frame_shape = None
        self.preview_shape = None

        self.reference_length = tk.DoubleVar(value=DEFAULT_REFERENCE_LENGTH_CM)

        self.create_preview_frame()
        self.create_control_panel()
        self.update_calibration_label()

        self.start_preview()
        self.check_queue()
        self.schedule_measurement()

        self.master.protocol("WM_DELETE_WINDOW", self.on_closing)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def create_preview_frame(self):
        preview_frame = tk.Frame(self.master, bg=COLORS['main'])
        preview_frame.grid(row=0, column=0, padx=10, pady=10, sticky="nsew")

        self.preview_label = tk.Label(preview_frame, bg="black")
        self.preview_label.pack()
        self.preview_label.bind("<Button-1>", self.on_preview_click)

    def create_control_panel(self):
        font = (GUI_SETTINGS['font_family'], GUI_SETTINGS['font_size_normal'])
        large_font = (GUI_SETTINGS['font_family'], GUI_SETTINGS['font_size_large'])
        pad = GUI_SETTINGS['button_padding']

        panel = tk.Frame(self.master, bg=COLORS['secondary'])
        panel.grid(row=0, column=1, padx=10, pady=10, sticky="ns")

        results = ttk.LabelFrame(panel, text="Results", padding="5")
        results.pack(fill=tk.X, padx=pad, pady=pad)
        self.diameter_label = ttk.Label(results, text="Diameter: -- cm", font=large_font)
        self.diameter_label.pack(anchor="w")
        self.height_label = ttk.Label(results, text="Height: -- cm", font=large_font)
        self.height_label.pack(anchor="w")
        self.weight_label = ttk.Label(results, text="Weight: -- kg", font=large_font)
        self.weight_label.pack(anchor="w")
        self.lumber_label = ttk.Label(results, text="Lumber Estimate: -- pieces", font=large_font)
        self.lumber_label.pack(anchor="w")

        calibration = ttk.LabelFrame(panel, text="Calibration", padding="5")
        calibration.pack(fill=tk.X, padx=pad, pady=pad)
        row = ttk.Frame(calibration)
        row.pack(fill=tk.X, pady=5)
        ttk.Label(row, text="Reference length:", font=font).pack(side=tk.LEFT)
        ttk.Entry(row, textvariable=self.reference_length, width=8).pack(side=tk.LEFT, padx=5)
        ttk.Label(row, text="cm", font=font).pack(side=tk.LEFT)
        ttk.Button(calibration, text="Calibrate", command=self.begin_calibration).pack(fill=tk.X)
        ttk.Button(calibration, text="Reset to Default", command=self.reset_calibration).pack(fill=tk.X)
        self.calibration_label = ttk.Label(calibration, text="", font=font, wraplength=220)
        self.calibration_label.pack(pady=5)

        actions = ttk.LabelFrame(panel, text="Settings", padding="5")
        actions.pack(fill=tk.X, padx=pad, pady=pad)
        ttk.Button(actions, text="Save Settings", command=self.save_settings).pack(fill=tk.X)
        ttk.Button(actions, text="Load Settings", command=self.load_settings).pack(fill=tk.X)
        ttk.Button(actions, text="Export DXF", command=self.export_dxf).pack(fill=tk.X)

        self.status_label = ttk.Label(panel, text="", font=font, wraplength=220)
        self.status_label.pack(padx=pad, pady=pad)

    # ------------------------------------------------------------------
    # Camera preview
    # ------------------------------------------------------------------

    def start_preview(self):
        try:
            self.frame_source.open()
        except RuntimeError as e:
            log.error("Cannot start preview: %s", e)
            self.status_label.config(text=str(e))
            return
        self.preview_running = True
        self.preview_thread = threading.Thread(target=self.buffered_preview, daemon=True)
        self.preview_thread.start()
        self.status_label.config(text=f"Live preview: camera {self.frame_source.camera_index}")

    def buffered_preview(self):
        """Read frames on a worker thread; Tk is only touched from the main loop"""
        while self.preview_running:
            try:
                frame = self.frame_source.get_frame()
                if frame is not None:
                    self.frame_buffer.append(frame)
                    self.update_queue.put(('frame', frame))
                time.sleep(PREVIEW_UPDATE_INTERVAL)
            except Exception:
                log.exception("Error in buffered_preview")
                time.sleep(PREVIEW_ERROR_DELAY)

    def check_queue(self):
        """Apply pending updates on the main thread"""
        try:
            while True:
                kind, payload = self.update_queue.get_nowait()
                if kind == 'frame':
                    self.show_frame(payload)
        except Empty:
            pass
        finally:
            self.master.after(10, self.check_queue)

    def show_frame(self, frame):
        height, width = frame.shape[:2]
        self.frame_shape = (height, width)
        preview_w, preview_h = preview_size(width, height)
        self.preview_shape = (preview_h, preview_w)

        if self.last_measurement:
            frame = draw_measurement_overlay(frame, self.last_measurement.outline,
                                             self.last_measurement.bounding_box,
                                             f"{self.last_measurement.diameter_cm:.1f} cm")
        image = Image.fromarray(frame).resize((preview_w, preview_h))
        imgtk = ImageTk.PhotoImage(image=image)
        self.preview_label.imgtk = imgtk  # Keep reference
        self.preview_label.configure(image=imgtk)

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------

    def schedule_measurement(self):
        self.measure_latest_frame()
        self.master.after(MEASURE_INTERVAL_MS, self.schedule_measurement)

    def measure_latest_frame(self):
        if not self.frame_buffer:
            return
        result = self.session.measure(self.frame_buffer[-1])
        if result is None:
            return
        self.show_result(result)

    def show_result(self, result):
        self.last_measurement = result if result else None
        texts = result_texts(result)
        self.diameter_label.config(text=texts['diameter'])
        self.height_label.config(text=texts['height'])
        self.weight_label.config(text=texts['weight'])
        self.lumber_label.config(text=texts['lumber'])

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def begin_calibration(self):
        if not self.frame_buffer:
            messagebox.showerror("Error", "Please start the camera first!")
            return
        try:
            reference_cm = self.reference_length.get()
        except tk.TclError:
            messagebox.showerror("Error", "Reference length must be a number")
            return
        self.session.begin_calibration(reference_cm)
        self.calibration_label.config(text=f"Click both ends of the {reference_cm:g} cm reference...")

    def on_preview_click(self, event):
        if not self.session.calibration_manager.in_progress or not self.preview_shape:
            return
        # Map preview coordinates back to frame pixels
        x = event.x * (self.frame_shape[1] / self.preview_shape[1])
        y = event.y * (self.frame_shape[0] / self.preview_shape[0])
        try:
            calibration = self.session.report_point(x, y)
        except InvalidCalibrationInput as e:
            messagebox.showerror("Calibration", f"Invalid measurement. Please try again.\n{e}")
            self.update_calibration_label()
            return
        if calibration is None:
            self.calibration_label.config(text="Click the second point...")
            return
        self.update_calibration_label()
        messagebox.showinfo("Calibration", f"Calibration complete!\n1 pixel = {calibration.cm_per_pixel:.4f} cm")

    def reset_calibration(self):
        self.session.calibration_manager.reset()
        self.update_calibration_label()

    def update_calibration_label(self):
        state = self.session.get_calibration_state()
        if state['calibrated']:
            text = f"Calibrated! 1 pixel = {state['cm_per_pixel']:.4f} cm"
        else:
            text = f"Not calibrated (placeholder {state['cm_per_pixel']:.4f} cm/pixel, results marked *)"
        self.calibration_label.config(text=text)

    # ------------------------------------------------------------------
    # Settings and export
    # ------------------------------------------------------------------

    def save_settings(self):
        name = simpledialog.askstring("Save Settings", "Settings name:", initialvalue="settings",
                                      parent=self.master)
        if not name:
            return
        try:
            path = self.settings_manager.save_settings(name, self.session.config, self.session.calibration)
        except OSError as e:
            messagebox.showerror("Error", f"Failed to save settings: {e}")
            return
        messagebox.showinfo("Success", f"Settings saved to {path}")

    def load_settings(self):
        saved = self.settings_manager.get_saved_settings()
        if not saved:
            messagebox.showinfo("Load Settings", "No saved settings found")
            return
        name = simpledialog.askstring("Load Settings", "Available: " + ", ".join(saved),
                                      initialvalue=saved[0], parent=self.master)
        if not name:
            return
        try:
            config, calibration = self.settings_manager.load_settings(name)
        except (OSError, ConfigError) as e:
            messagebox.showerror("Error", f"Failed to load settings: {e}")
            return
        self.session.config = config
        if calibration is not None:
            self.session.calibration_manager.restore(calibration['cm_per_pixel'], calibration['calibrated'])
        self.update_calibration_label()
        self.status_label.config(text=f"Settings loaded from {name}")

    def export_dxf(self):
        if not self.last_measurement:
            messagebox.showerror("Error", "No tree detected to export")
            return
        path = filedialog.asksaveasfilename(defaultextension=".dxf",
                                            filetypes=[("DXF files", "*.dxf"), ("All files", "*.*")],
                                            title="Export Trunk Outline")
        if not path:
            return
        try:
            export_outline_dxf(self.last_measurement, path)
        except (OSError, ValueError) as e:
            messagebox.showerror("Error", f"Failed to export DXF: {e}")
            return
        self.status_label.config(text=f"DXF saved to {path}")

    def on_closing(self):
        self.preview_running = False
        if self.preview_thread:
            self.preview_thread.join(timeout=1.0)
        self.frame_source.release()
        self.master.destroy()


def run_app(camera_index=0, resolution=None, session=None):
    root = tk.Tk()
    TrunkVisionApp(root, FrameSource(camera_index, resolution), session=session)
    root.mainloop()
