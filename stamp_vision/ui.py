import os
import sys

import numpy as np
from PySide6.QtCore import Qt, QThread, Signal
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFileDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QSpinBox,
    QSplitter,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from .config import parse_color
from .errors import StampVisionError, user_message
from .loader import load_path
from .models import ProcessedImage
from .preview import LatestRequestGate, PreviewRequest, render
from .presets import CUSTOM, PRESET_LABELS, ParameterModel
from .seal import SEAL_COLORS_RECOMMENDED
from .utils import save_bytes_any_path

ADVANCED_KNOBS = [
    ("threshold", "Contraste trazo/fondo", "Mayor = más fondo eliminado"),
    ("stroke_strength", "Grosor y continuidad", "Mayor = trazos más continuos"),
    ("edge_smoothness", "Suavidad de bordes", "Mayor = bordes más suaves"),
    ("noise_removal", "Eliminación de ruido", "Mayor = menos artefactos"),
    ("saturation_filter", "Filtro anti-sello", "Mayor = más agresivo vs grises"),
]


# ---------- 工具函数 ----------
def stamp_to_qpixmap(image: ProcessedImage) -> QPixmap:
    """Convert an RGBA stamp to QPixmap, alpha preserved."""
    pixels = np.ascontiguousarray(image.pixels)
    h, w = pixels.shape[:2]
    qimg = QImage(pixels.data, w, h, 4 * w, QImage.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


# ---------- 后台线程：渲染预览 ----------
class RenderThread(QThread):
    finished_render = Signal(int, object)
    error = Signal(int, str)

    def __init__(self, request: PreviewRequest):
        super().__init__()
        self.request = request

    def run(self):
        try:
            token, image = render(self.request)
            self.finished_render.emit(token, image)
        except Exception as e:
            self.error.emit(self.request.token, user_message(e))


# ---------- 主界面类 ----------
class SignatureAdjusterUI(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Ajuste de firma / sello")
        self.resize(1000, 600)
        self.raw = None
        self.preview = None
        self.model = ParameterModel()
        self.gate = LatestRequestGate()
        self._threads = set()
        self._syncing = False

        self.statusBar = QStatusBar()
        self.statusBar.setFixedHeight(25)
        self.statusLabel = QLabel("Listo")
        self.statusBar.addWidget(self.statusLabel, 1)

        main_layout = QVBoxLayout(self)
        splitter = QSplitter(Qt.Horizontal)
        splitter.setHandleWidth(5)
        splitter.addWidget(self.create_control_panel())
        splitter.addWidget(self.create_image_panel())
        splitter.setSizes([300, 700])
        main_layout.addWidget(splitter)
        main_layout.addWidget(self.statusBar)

    def update_status(self, msg):
        self.statusLabel.setText(msg)
        self.statusBar.update()

    # ---------- 控制面板 ----------
    def create_control_panel(self):
        panel = QWidget()
        layout = QVBoxLayout(panel)

        file_group = QGroupBox("Archivo")
        vbox = QVBoxLayout()
        self.btn_load = QPushButton("Cargar imagen")
        self.btn_save = QPushButton("Guardar PNG")
        vbox.addWidget(self.btn_load)
        vbox.addWidget(self.btn_save)
        file_group.setLayout(vbox)

        preset_group = QGroupBox("Tipo de firma")
        grid = QGridLayout()
        self.preset_buttons = {}
        for i, name in enumerate(["clara", "oscura", "escaneada", "digital"]):
            btn = QPushButton(PRESET_LABELS[name])
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, n=name: self.select_preset(n))
            self.preset_buttons[name] = btn
            grid.addWidget(btn, i // 2, i % 2)
        preset_group.setLayout(grid)

        tune_group = QGroupBox("Ajuste fino")
        vtune = QVBoxLayout()
        self.fine_tune = QSlider(Qt.Horizontal)
        self.fine_tune.setRange(0, 100)
        self.fine_tune.setValue(int(self.model.fine_tune))
        hint = QHBoxLayout()
        hint.addWidget(QLabel("Menos limpieza"))
        hint.addStretch()
        hint.addWidget(QLabel("Más limpieza"))
        vtune.addWidget(self.fine_tune)
        vtune.addLayout(hint)
        tune_group.setLayout(vtune)
        self.tune_group = tune_group

        self.chk_advanced = QCheckBox("Mostrar controles avanzados")

        self.advanced_group = QGroupBox("Ajuste por dimensión")
        vadv = QVBoxLayout()
        self.knob_sliders = {}
        for key, label, tip in ADVANCED_KNOBS:
            vadv.addWidget(QLabel(label))
            slider = QSlider(Qt.Horizontal)
            slider.setRange(0, 100)
            slider.setToolTip(tip)
            slider.valueChanged.connect(lambda v, k=key: self.edit_field(k, v))
            self.knob_sliders[key] = slider
            vadv.addWidget(slider)
        self.spin_thickness = QSpinBox()
        self.spin_thickness.setRange(-2, 2)
        self.spin_thickness.setPrefix("Grosor del trazo: ")
        self.spin_thickness.valueChanged.connect(lambda v: self.edit_field("stroke_thickness", v))
        vadv.addWidget(self.spin_thickness)
        self.advanced_group.setLayout(vadv)
        self.advanced_group.setVisible(False)

        color_group = QGroupBox("Color de tinta")
        vcolor = QVBoxLayout()
        self.combo_color = QComboBox()
        self.combo_color.addItem("Original", None)
        for entry in SEAL_COLORS_RECOMMENDED:
            self.combo_color.addItem(entry["name"], entry["hex"])
        vcolor.addWidget(self.combo_color)
        color_group.setLayout(vcolor)

        for g in [file_group, preset_group, tune_group, self.chk_advanced, self.advanced_group, color_group]:
            layout.addWidget(g)
        layout.addStretch()

        self.btn_load.clicked.connect(self.load_image)
        self.btn_save.clicked.connect(self.save_current)
        self.fine_tune.valueChanged.connect(self.set_fine_tune)
        self.chk_advanced.toggled.connect(self.set_advanced)
        self.combo_color.currentIndexChanged.connect(self.change_color)
        self.sync_controls()
        return panel

    def create_image_panel(self):
        panel = QWidget()
        layout = QVBoxLayout(panel)
        self.label = QLabel("Sin imagen")
        self.label.setAlignment(Qt.AlignCenter)
        self.label.setStyleSheet("background: white;")
        layout.addWidget(self.label)
        return panel

    # ---------- 模型 -> 控件 ----------
    def sync_controls(self):
        self._syncing = True
        try:
            params = self.model.params
            for key, slider in self.knob_sliders.items():
                slider.setValue(int(round(getattr(params, key))))
            self.spin_thickness.setValue(params.stroke_thickness)
            index = 0
            for i in range(1, self.combo_color.count()):
                if parse_color(self.combo_color.itemData(i)) == params.ink_color:
                    index = i
            self.combo_color.setCurrentIndex(index)
            self.fine_tune.setValue(int(round(self.model.fine_tune)))
            for name, btn in self.preset_buttons.items():
                btn.setChecked(name == self.model.preset)
        finally:
            self._syncing = False

    # ---------- 参数变化 ----------
    def select_preset(self, name):
        self.model.select_preset(name)
        self.sync_controls()
        self.request_render()

    def edit_field(self, key, value):
        if self._syncing:
            return
        self.model.edit_field(key, value)
        self.sync_controls()
        self.request_render()

    def set_fine_tune(self, value):
        if self._syncing:
            return
        self.model.set_fine_tune(value)
        self.request_render()

    def set_advanced(self, checked):
        self.model.set_advanced(checked)
        self.advanced_group.setVisible(checked)
        self.tune_group.setVisible(not checked)
        self.request_render()

    def change_color(self, _index):
        self.edit_field("ink_color", self.combo_color.currentData())

    # ---------- 渲染 ----------
    def request_render(self):
        if self.raw is None:
            return
        request = PreviewRequest(self.gate.issue(), self.raw, self.model.effective_params())
        thread = RenderThread(request)
        thread.finished_render.connect(self.on_render_finished)
        thread.error.connect(self.on_render_error)
        thread.finished.connect(lambda t=thread: self._threads.discard(t))
        self._threads.add(thread)
        thread.start()

    def on_render_finished(self, token, image):
        if not self.gate.accept(token):
            return
        self.preview = image
        self.label.setPixmap(stamp_to_qpixmap(image))
        preset = PRESET_LABELS.get(self.model.preset, PRESET_LABELS[CUSTOM])
        self.update_status(f"Vista previa actualizada ({preset})")

    def on_render_error(self, token, msg):
        if not self.gate.accept(token):
            return
        self.update_status(msg)

    # ---------- 文件操作 ----------
    def load_image(self):
        path, _ = QFileDialog.getOpenFileName(self, "Seleccionar imagen", "", "Imágenes (*.png *.jpg *.jpeg)")
        if not path:
            self.update_status("Selección cancelada")
            return
        try:
            self.raw = load_path(path)
        except (OSError, StampVisionError) as e:
            self.label.setText(user_message(e) if isinstance(e, StampVisionError) else str(e))
            self.update_status("Error al cargar la imagen")
            return
        self.model = ParameterModel()
        self.model.set_advanced(self.chk_advanced.isChecked())
        self.sync_controls()
        self.update_status(f"Imagen cargada: {os.path.basename(path)} ({self.raw.width}x{self.raw.height})")
        self.request_render()

    def save_current(self):
        if self.preview is None:
            self.update_status("No hay resultado para guardar")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Guardar firma", "firma.png", "PNG (*.png)")
        if not path:
            return
        if save_bytes_any_path(path, self.preview.to_png()):
            self.update_status(f"Guardado en: {os.path.basename(path)}")
        else:
            self.update_status("Error al guardar")


# ---------- 主入口 ----------
def main():
    app = QApplication(sys.argv)
    w = SignatureAdjusterUI()
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
