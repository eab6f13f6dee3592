"""
Unit tests for the plugin entry point and its hints registry side effects.
"""
from dbpedia_info.common.config import PLUGIN_ID
from dbpedia_info.common.schemas import AnnotatedBlock, Card, CardInfo
from dbpedia_info.pipeline.hints_registry import InMemoryHintsRegistry
from dbpedia_info.pipeline.link_detector import DbpediaInfoPlugin, WikipediaLinkDetector

WIKI = "https://en.wikipedia.org/wiki/"


class RecordingRegistry:
    """Registry double recording call order."""

    def __init__(self):
        self.events = []

    def remove_hints_in_region(self, region, hr_id, plugin_id):
        self.events.append(("remove", tuple(region), hr_id, plugin_id))

    def add_hints(self, hr_id, plugin_id, cards):
        self.events.append(("add", hr_id, plugin_id, list(cards)))


def block(text, start, uri, region=None):
    data = {"text": text, "start": start, "end": start + len(text), "semanticContext": [{"object": uri}]}
    if region is not None:
        data["region"] = region
    return AnnotatedBlock.model_validate(data)


class TestExecute:

    def setup_method(self):
        detector = WikipediaLinkDetector(prefix=WIKI, trim_whitespace_in_span=True, see_also_predicates=[])
        self.plugin = DbpediaInfoPlugin(detector)
        self.registry = RecordingRegistry()

    def test_empty_contexts_no_calls(self):
        assert self.plugin.execute("hr-1", [], self.registry) == []
        assert self.registry.events == []

    def test_removes_for_every_block_then_adds_once(self):
        blocks = [
            block("Scotland", 0, WIKI + "Scotland"),
            block("nothing", 9, "http://example.org/nothing"),
            block("Glasgow", 17, WIKI + "Glasgow"),
        ]
        cards = self.plugin.execute("hr-1", blocks, self.registry)

        kinds = [e[0] for e in self.registry.events]
        assert kinds == ["remove", "remove", "remove", "add"]
        assert [e[1] for e in self.registry.events[:3]] == [(0, 8), (9, 16), (17, 24)]
        assert all(e[2] == "hr-1" and e[3] == PLUGIN_ID for e in self.registry.events[:3])

        _, hr_id, plugin_id, added = self.registry.events[-1]
        assert hr_id == "hr-1"
        assert plugin_id == PLUGIN_ID
        assert [c.info.term for c in added] == ["Scotland", "Glasgow"]
        assert added == cards

    def test_no_matches_no_add(self):
        blocks = [block("nothing", 0, "http://example.org/nothing")]
        assert self.plugin.execute("hr-2", blocks, self.registry) == []
        assert [e[0] for e in self.registry.events] == ["remove"]

    def test_explicit_region_used_for_removal(self):
        blocks = [block("Scotland", 5, WIKI + "Scotland", region=[0, 40])]
        self.plugin.execute("hr-3", blocks, self.registry)
        assert self.registry.events[0][1] == (0, 40)

    def test_editor_argument_ignored(self):
        blocks = [block("Scotland", 0, WIKI + "Scotland")]
        cards = self.plugin.execute("hr-4", blocks, self.registry, editor=object())
        assert len(cards) == 1


class TestInMemoryRegistry:

    def test_refresh_replaces_stale_cards(self):
        registry = InMemoryHintsRegistry()
        stale = Card(info=CardInfo(term="Old"), location=(0, 3))
        other = Card(card="other-plugin", info=CardInfo(term="Keep"), location=(0, 3))
        registry.add_hints("hr-0", PLUGIN_ID, [stale])
        registry.add_hints("hr-0", "other-plugin", [other])

        detector = WikipediaLinkDetector(prefix=WIKI, trim_whitespace_in_span=True, see_also_predicates=[])
        DbpediaInfoPlugin(detector).execute("hr-1", [block("Scotland", 0, WIKI + "Scotland")], registry)

        by_plugin = registry.by_plugin()
        assert [c.info.term for c in by_plugin[PLUGIN_ID]] == ["Scotland"]
        assert [c.info.term for c in by_plugin["other-plugin"]] == ["Keep"]

    def test_cards_outside_region_kept(self):
        registry = InMemoryHintsRegistry()
        far = Card(info=CardInfo(term="Far"), location=(100, 110))
        registry.add_hints("hr-0", PLUGIN_ID, [far])
        registry.remove_hints_in_region((0, 10), "hr-1", PLUGIN_ID)
        assert [rc.card.info.term for rc in registry.cards] == ["Far"]
        assert registry.calls[-1] == ("remove", ((0, 10), "hr-1", PLUGIN_ID))
