"""PyQt6 adapter exposing a third-party board QWidget to the overlay engine.

The board is any QWidget whose objectName matches the configured board
name. Its pieces, hint markers and native coordinates are child widgets
described by dynamic properties:

- "class": space separated class list ("piece wk square-51", "hint square-34")
- "transform": CSS-like translate/matrix offset of a piece
- "flipped" / "orientation": explicit orientation markers on the board

Host mutations are observed with event filters (child added/removed,
property changes, show/hide) restricted to the host's own widgets.
"""

from PyQt6 import sip
from PyQt6.QtCore import QEvent, QObject, QTimer
from PyQt6.QtWidgets import QApplication, QLabel, QWidget
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
import chess

from squarelabels.models.overlay_layer import OverlayLayer
from squarelabels.services.board_host import (
    BoardHost, BoardWidget, OrientationHints, PieceElement, PointerListener, Subscription,
)
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.utils.element_parsing import (
    class_tokens, has_class, parse_piece_code, parse_square_class,
)
from squarelabels.views.coordinate_overlay_widget import CoordinateOverlayWidget


MUTATION_EVENTS = {
    QEvent.Type.ChildAdded,
    QEvent.Type.ChildRemoved,
    QEvent.Type.DynamicPropertyChange,
    QEvent.Type.Show,
    QEvent.Type.Hide,
}


def _is_alive(obj: Optional[QObject]) -> bool:
    return obj is not None and not sip.isdeleted(obj)


def _is_descendant(obj: QObject, ancestor: QObject) -> bool:
    """True if obj is ancestor or one of its (transitive) children."""
    current = obj
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent()
    return False


class _BoardEventFilter(QObject):
    """Event filter on the board widget feeding pointer listeners and watches."""

    def __init__(self, adapter: 'QtBoardWidget') -> None:
        super().__init__(adapter.board)
        self._adapter = adapter
        self.pointer_listeners: List[PointerListener] = []
        self.native_watchers: List[Callable[[], None]] = []
        self._watched_natives: Set[int] = set()

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        self._dispatch(obj, event)
        return False

    @ErrorHandler.guard("Board event")
    def _dispatch(self, obj: QObject, event: QEvent) -> None:
        adapter = self._adapter
        event_type = event.type()

        if obj is adapter.board:
            if event_type == QEvent.Type.MouseMove:
                position = event.position()
                for listener in list(self.pointer_listeners):
                    listener.on_pointer_move(position.x(), position.y())
            elif event_type == QEvent.Type.Leave:
                for listener in list(self.pointer_listeners):
                    listener.on_pointer_leave()
            elif event_type == QEvent.Type.MouseButtonPress:
                position = event.position()
                for listener in list(self.pointer_listeners):
                    listener.on_pointer_press(position.x(), position.y())
            elif event_type == QEvent.Type.Resize:
                adapter.fit_overlays()
                width, height = adapter.size()
                for listener in list(self.pointer_listeners):
                    listener.on_resize(width, height)
            elif event_type in (QEvent.Type.ChildAdded, QEvent.Type.ChildPolished):
                child = event.child()
                if adapter.is_native_coordinates(child):
                    self.watch_native(child)
                    self._notify_native()
        elif event_type == QEvent.Type.Show and adapter.is_native_coordinates(obj):
            self._notify_native()

    def watch_native(self, widget: QObject) -> None:
        if id(widget) not in self._watched_natives:
            self._watched_natives.add(id(widget))
            widget.installEventFilter(self)

    def _notify_native(self) -> None:
        if not self.native_watchers:
            return
        # Deferred so a widget is never hidden from inside its own show event
        QTimer.singleShot(0, self._run_native_watchers)

    def _run_native_watchers(self) -> None:
        for callback in list(self.native_watchers):
            callback()


class QtBoardWidget(BoardWidget):
    """BoardWidget implementation wrapping a board QWidget."""

    def __init__(self, board: QWidget, root: QWidget, config: Dict[str, Any]) -> None:
        """Initialize the adapter.

        Args:
            board: The board QWidget.
            root: Host root widget the board must stay attached to.
            config: Configuration dictionary.
        """
        self.board = board
        self.root = root
        self.config = config

        board_config = config.get('board', {})
        self.coordinates_name = board_config.get('coordinates_object_name', 'coordinates')
        self.overlay_name = board_config.get('overlay_object_name', 'coordinate-labels-container')
        self.label_name = board_config.get('label_object_name', 'coordinate-label')
        self.class_property = board_config.get('class_property', 'class')
        self.transform_property = board_config.get('transform_property', 'transform')
        self.flipped_property = board_config.get('flipped_property', 'flipped')
        self.orientation_property = board_config.get('orientation_property', 'orientation')
        self.hints_property = board_config.get('hints_property', 'hintMarkers')

        self._filter: Optional[_BoardEventFilter] = None

    def size(self) -> Tuple[float, float]:
        return float(self.board.width()), float(self.board.height())

    def is_attached(self) -> bool:
        return _is_alive(self.board) and _is_alive(self.root) and _is_descendant(self.board, self.root)

    def read_orientation_hints(self) -> OrientationHints:
        board_class = self._class_of(self.board)
        orientation = self.board.property(self.orientation_property)
        marker = (bool(self.board.property(self.flipped_property))
                  or 'flipped' in class_tokens(board_class)
                  or (isinstance(orientation, str) and orientation.strip().lower() == 'black'))
        pieces = [PieceElement(class_list=self._class_of(child),
                               transform=self._transform_of(child))
                  for child in self._piece_children()]
        return OrientationHints(flipped_marker=marker, pieces=pieces, board_height=float(self.board.height()))

    def read_piece_occupancy(self) -> Dict[str, chess.Piece]:
        occupancy: Dict[str, chess.Piece] = {}
        for child in self._piece_children():
            class_list = self._class_of(child)
            piece = parse_piece_code(class_list)
            square = parse_square_class(class_list)
            if piece is not None and square is not None:
                occupancy[square] = piece
        return occupancy

    def read_legal_move_hints(self) -> Optional[Set[str]]:
        if self.board.property(self.hints_property) is False:
            return None
        hints: Set[str] = set()
        for child in self._class_children():
            class_list = self._class_of(child)
            if has_class(class_list, 'hint') or has_class(class_list, 'capture-hint'):
                square = parse_square_class(class_list)
                if square is not None:
                    hints.add(square)
        return hints

    def set_native_coordinates_visible(self, visible: bool) -> int:
        natives = self._native_coordinates()
        for widget in natives:
            widget.setVisible(visible)
        return len(natives)

    def watch_native_coordinates(self, callback: Callable[[], None]) -> Subscription:
        event_filter = self._ensure_filter()
        for widget in self._native_coordinates():
            event_filter.watch_native(widget)
        event_filter.native_watchers.append(callback)

        def dispose() -> None:
            if callback in event_filter.native_watchers:
                event_filter.native_watchers.remove(callback)

        return Subscription(dispose)

    def mount_layer(self, layer: OverlayLayer) -> None:
        overlay = CoordinateOverlayWidget(self.config, layer, self.board)
        layer.view = overlay
        overlay.show()

    def remove_layers(self) -> int:
        if not _is_alive(self.board):
            return 0
        removed = 0
        for overlay in self.board.findChildren(QWidget, self.overlay_name):
            overlay.hide()
            overlay.setParent(None)
            overlay.deleteLater()
            removed += 1
        for stray in self.board.findChildren(QLabel, self.label_name):
            stray.hide()
            stray.setParent(None)
            stray.deleteLater()
            removed += 1
        return removed

    def render_layer(self, layer: OverlayLayer) -> None:
        view = layer.view
        if _is_alive(view):
            view.refresh()

    def subscribe_pointer(self, listener: PointerListener) -> Subscription:
        event_filter = self._ensure_filter()
        self.board.setMouseTracking(True)
        event_filter.pointer_listeners.append(listener)

        def dispose() -> None:
            if listener in event_filter.pointer_listeners:
                event_filter.pointer_listeners.remove(listener)

        return Subscription(dispose)

    def fit_overlays(self) -> None:
        """Stretch mounted overlays over the whole board."""
        for overlay in self.board.findChildren(QWidget, self.overlay_name):
            overlay.setGeometry(self.board.rect())

    def is_native_coordinates(self, obj: Optional[QObject]) -> bool:
        return isinstance(obj, QWidget) and obj.objectName() == self.coordinates_name

    def _ensure_filter(self) -> _BoardEventFilter:
        if self._filter is None or not _is_alive(self._filter):
            self._filter = _BoardEventFilter(self)
            self.board.installEventFilter(self._filter)
        return self._filter

    def _native_coordinates(self) -> List[QWidget]:
        return self.board.findChildren(QWidget, self.coordinates_name)

    def _class_children(self) -> List[QWidget]:
        return [child for child in self.board.findChildren(QWidget)
                if not self._in_overlay(child) and self._class_of(child)]

    def _piece_children(self) -> List[QWidget]:
        return [child for child in self._class_children() if has_class(self._class_of(child), 'piece')]

    def _in_overlay(self, widget: QWidget) -> bool:
        current = widget
        while current is not None and current is not self.board:
            if current.objectName() == self.overlay_name:
                return True
            current = current.parentWidget()
        return False

    def _class_of(self, widget: QObject) -> str:
        value = widget.property(self.class_property)
        return value if isinstance(value, str) else ""

    def _transform_of(self, widget: QObject) -> Optional[str]:
        value = widget.property(self.transform_property)
        return value if isinstance(value, str) else None


class _MutationFilter(QObject):
    """Application-wide event filter reporting mutations inside the host."""

    def __init__(self, host: 'QtBoardHost') -> None:
        super().__init__()
        self._host = host
        self.callbacks: List[Callable[[], None]] = []

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        if event.type() in MUTATION_EVENTS and self.callbacks:
            self._dispatch(obj, event)
        return False

    @ErrorHandler.guard("Host mutation")
    def _dispatch(self, obj: QObject, event: QEvent) -> None:
        if not self._host.owns(obj) or self._host.is_overlay_object(obj):
            return
        if event.type() in (QEvent.Type.ChildAdded, QEvent.Type.ChildRemoved):
            child = event.child()
            # Timers, event filters and other helper objects are not board structure
            if not isinstance(child, QWidget) or self._host.is_overlay_object(child):
                return
        for callback in list(self.callbacks):
            callback()


class QtBoardHost(BoardHost):
    """BoardHost implementation searching a widget tree for the board."""

    def __init__(self, root: QWidget, config: Dict[str, Any]) -> None:
        """Initialize the host.

        Args:
            root: Top-level widget that may (eventually) contain the board.
            config: Configuration dictionary.
        """
        self.root = root
        self.config = config
        board_config = config.get('board', {})
        self.board_name = board_config.get('object_name', 'wc-chess-board')
        self.overlay_name = board_config.get('overlay_object_name', 'coordinate-labels-container')
        self.label_name = board_config.get('label_object_name', 'coordinate-label')
        self._current: Optional[QtBoardWidget] = None
        self._filter: Optional[_MutationFilter] = None

    def locate(self) -> Optional[BoardWidget]:
        if not _is_alive(self.root):
            return None
        if self.root.objectName() == self.board_name:
            board = self.root
        else:
            board = self.root.findChild(QWidget, self.board_name)
        if board is None:
            return None
        if self._current is not None and self._current.board is board and self._current.is_attached():
            return self._current
        self._current = QtBoardWidget(board, self.root, self.config)
        return self._current

    def subscribe_mutations(self, callback: Callable[[], None]) -> Subscription:
        if self._filter is None:
            self._filter = _MutationFilter(self)
            QApplication.instance().installEventFilter(self._filter)
        self._filter.callbacks.append(callback)
        return Subscription(lambda: self._unsubscribe(callback))

    def owns(self, obj: Optional[QObject]) -> bool:
        """True if obj belongs to the host's widget tree."""
        return _is_alive(obj) and _is_alive(self.root) and _is_descendant(obj, self.root)

    def is_overlay_object(self, obj: Optional[QObject]) -> bool:
        """True for the overlay container, its labels and anything inside them."""
        current = obj
        while current is not None:
            if isinstance(current, CoordinateOverlayWidget):
                return True
            if isinstance(current, QWidget) and current.objectName() in (self.overlay_name, self.label_name):
                return True
            current = current.parent()
        return False

    def _unsubscribe(self, callback: Callable[[], None]) -> None:
        if self._filter is None:
            return
        if callback in self._filter.callbacks:
            self._filter.callbacks.remove(callback)
        if not self._filter.callbacks:
            app = QApplication.instance()
            if app is not None:
                app.removeEventFilter(self._filter)
            self._filter.deleteLater()
            self._filter = None
