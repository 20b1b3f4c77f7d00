"""
citymaps/map/interaction.py

State machine for hover, selection and overlay visibility.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from citymaps.domain.interaction import InteractionState
from citymaps.map.layers import RegionLayerController
from citymaps.map.panel import DetailPanel
from citymaps.services.statistics_index import StatisticsJoinIndex, normalize_region_id

logger = logging.getLogger(__name__)


class InteractionStateMachine:
    """
    Single owner of InteractionState.

    Every event yields a defined next state, then requests a restyle of the
    affected regions and recomputes panel content. Hover and selection are
    independent: hovering never clears a selection, only `click` and
    `close` change it. `overlay_visible` is orthogonal to both.
    """

    def __init__(
        self,
        controller: RegionLayerController,
        panel: DetailPanel,
        index: StatisticsJoinIndex | None = None,
    ) -> None:
        self._controller = controller
        self._panel = panel
        self._index = index
        self._state = InteractionState()
        controller.attach_events(self)
        controller.apply_state(self._state)
        self._refresh_panel()

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def panel(self) -> DetailPanel:
        return self._panel

    def bind_index(self, index: StatisticsJoinIndex | None) -> None:
        """
        Swap in a freshly built index, or None when statistics are unavailable.
        """

        self._index = index
        self._refresh_panel()

    def pointer_enter(self, region_id: str) -> None:
        region_id = normalize_region_id(region_id)
        previous = self._state.hovered_region_id
        self._commit(replace(self._state, hovered_region_id=region_id), (previous, region_id))

    def pointer_leave(self, region_id: str) -> None:
        region_id = normalize_region_id(region_id)
        if self._state.hovered_region_id == region_id:
            self._commit(replace(self._state, hovered_region_id=None), (region_id,))
        else:
            self._commit(self._state, (region_id,))

    def click(self, region_id: str) -> None:
        region_id = normalize_region_id(region_id)
        if not self._controller.has_region(region_id):
            logger.warning("Click on unrendered region ignored id=%s", region_id)
            self._commit(self._state, ())
            return

        previous = self._state.selected_region_id
        self._commit(replace(self._state, selected_region_id=region_id), (previous, region_id))
        self._controller.zoom_to_region(region_id)
        self._panel.open()

    def close(self) -> None:
        previous = self._state.selected_region_id
        self._commit(replace(self._state, selected_region_id=None), (previous,))

    def toggle_overlay(self) -> None:
        self._commit(replace(self._state, overlay_visible=not self._state.overlay_visible), None)

    def regions_reloaded(self) -> None:
        """
        Drop hover or selection that no longer names a rendered region.
        """

        state = self._state
        if not self._controller.has_region(state.hovered_region_id):
            state = replace(state, hovered_region_id=None)
        if not self._controller.has_region(state.selected_region_id):
            state = replace(state, selected_region_id=None)
        self._commit(state, None)

    def _commit(self, state: InteractionState, affected: Iterable[str | None] | None) -> None:
        self._state = state
        region_ids = None if affected is None else [region_id for region_id in affected if region_id]
        self._controller.apply_state(state, region_ids)
        self._refresh_panel()

    def _refresh_panel(self) -> None:
        region_id = self._state.relevant_region_id
        if region_id is None:
            self._panel.update(None)
            self._panel.close()
            return

        if self._index is None:
            self._panel.show_unavailable(region_id=region_id)
        else:
            self._panel.update(self._index.lookup(region_id), region_id=region_id)
        self._panel.open()
