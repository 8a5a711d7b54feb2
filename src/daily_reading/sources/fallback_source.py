"""Offline literary fallback source.

A small built-in collection of public-domain Japanese passages (Aozora
Bunko). One group is chosen per date so the same day always reads the
same text. Needs no network.
"""

import logging
from datetime import date

import httpx
from pydantic import BaseModel

from ..models import FallbackItem, Section, SourceKind
from .base import BaseSource

logger = logging.getLogger(__name__)


class ReadingGroup(BaseModel):
    id: str
    title: str
    items: list[FallbackItem]


def _item(text: str, author: str, work: str | None = None) -> FallbackItem:
    return FallbackItem(text=text, author=author, work=work)


FALLBACK_GROUPS: list[ReadingGroup] = [
    ReadingGroup(
        id="haiku_basho",
        title="芭蕉の俳句 8選",
        items=[
            _item("古池や蛙飛び込む水の音", "松尾芭蕉", "俳句"),
            _item("閑さや岩にしみ入る蝉の声", "松尾芭蕉", "俳句"),
            _item("夏草や兵どもが夢の跡", "松尾芭蕉", "俳句"),
            _item("ものいへば唇寂し秋の風", "松尾芭蕉", "俳句"),
            _item("秋深き隣は何をする人ぞ", "松尾芭蕉", "俳句"),
            _item("この道や行く人なしに秋の暮", "松尾芭蕉", "俳句"),
            _item("旅に病んで夢は枯野をかけ廻る", "松尾芭蕉", "俳句"),
            _item("花の雲鐘は上野か浅草か", "松尾芭蕉", "俳句"),
        ],
    ),
    ReadingGroup(
        id="soseki",
        title="夏目漱石 名文選",
        items=[
            _item(
                "智に働けば角が立つ。情に棹させば流される。意地を通せば窮屈だ。"
                "とかくに人の世は住みにくい。",
                "夏目漱石", "草枕",
            ),
            _item(
                "親譲りの無鉄砲で小供の時から損ばかりしている。"
                "小学校に居る時分学校の二階から飛び降りて一週間ほど腰を抜かした事がある。",
                "夏目漱石", "坊っちゃん",
            ),
            _item(
                "吾輩は猫である。名前はまだ無い。どこで生れたかとんと見当がつかぬ。"
                "何でも薄暗いじめじめした所でニャーニャー泣いていた事だけは記憶している。",
                "夏目漱石", "吾輩は猫である",
            ),
        ],
    ),
    ReadingGroup(
        id="akutagawa",
        title="芥川龍之介 名文選",
        items=[
            _item(
                "ある日の暮方の事である。一人の下人が、羅生門の下で雨やみを待っていた。"
                "広い門の下には、この男のほかに誰もいない。",
                "芥川龍之介", "羅生門",
            ),
            _item(
                "人生は一箱のマッチに似ている。重大に扱うのは馬鹿馬鹿しい。"
                "重大に扱わねば危険である。",
                "芥川龍之介", "侏儒の言葉",
            ),
        ],
    ),
    ReadingGroup(
        id="miyazawa",
        title="宮沢賢治 名文選",
        items=[
            _item(
                "雨ニモマケズ 風ニモマケズ 雪ニモ夏ノ暑サニモマケヌ 丈夫ナカラダヲモチ "
                "慾ハナク 決シテ瞋ラズ イツモシヅカニワラッテヰル",
                "宮沢賢治", "雨ニモマケズ",
            ),
            _item(
                "なぜ、むしが光るか、おれは知らない。けれども、なんとなくわかるような気がするよ。",
                "宮沢賢治", "銀河鉄道の夜",
            ),
            _item(
                "風の又三郎が、ガラスのマントをひるがえして立っていました。",
                "宮沢賢治", "風の又三郎",
            ),
        ],
    ),
    ReadingGroup(
        id="modern",
        title="近代文学 名場面",
        items=[
            _item(
                "木曾路はすべて山の中である。あるところは岨づたいに行く崖の道であり、"
                "あるところは数十間の深さに臨む木曾川の岸であり、",
                "島崎藤村", "夜明け前",
            ),
            _item(
                "国境の長いトンネルを抜けると雪国であった。夜の底が白くなった。"
                "信号所に汽車が止まった。",
                "川端康成", "雪国",
            ),
            _item(
                "恥の多い生涯を送って来ました。自分には、人間の生活というものが、"
                "見当つかないのです。",
                "太宰治", "人間失格",
            ),
            _item(
                "メロスは激怒した。必ず、かの邪智暴虐の王を除かなければならぬと決意した。",
                "太宰治", "走れメロス",
            ),
        ],
    ),
]

ATTRIBUTION = "青空文庫より"


def group_for_date(target_date: date, groups: list[ReadingGroup] = FALLBACK_GROUPS) -> ReadingGroup:
    """Deterministically pick a group from the ISO date string."""
    digest = sum(ord(ch) for ch in target_date.isoformat())
    return groups[digest % len(groups)]


def build_section(group: ReadingGroup) -> Section:
    return Section(
        kind=SourceKind.FALLBACK,
        title=group.title,
        items=[item.model_copy() for item in group.items],
        attribution=ATTRIBUTION,
    )


class FallbackSource(BaseSource):
    """Built-in literary passages; never fails."""

    kind = SourceKind.FALLBACK
    name = "fallback"

    def __init__(self, groups: list[ReadingGroup] | None = None) -> None:
        self.groups = groups or FALLBACK_GROUPS

    async def fetch(self, client: httpx.AsyncClient, target_date: date) -> Section:
        group = group_for_date(target_date, self.groups)
        logger.info("Fallback: using group %s for %s", group.id, target_date)
        return build_section(group)
