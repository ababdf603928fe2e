"""Hypothesis strategies for Topicline models.

Provides strategies for topic ids, vote inputs, alias maps and message
batches with clustered timestamps.
"""

from hypothesis import strategies as st

from topicline.remote.models import Message

# Small alphabet so generated ids collide often (ties, chains, cycles).
topic_ids = st.sampled_from(["alpha", "beta", "gamma", "delta", "omega"])

vote_inputs = st.lists(topic_ids, max_size=30)

thresholds = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)

min_hits = st.integers(min_value=0, max_value=10)

alias_names = st.sampled_from([f"t{i}" for i in range(8)])

alias_maps = st.dictionaries(keys=alias_names, values=alias_names, max_size=8)

# Second offsets; few distinct values so several messages share an instant.
_offsets = st.integers(min_value=0, max_value=5)


def _iso(offset: int) -> str:
    return f"2025-01-01T00:00:{offset:02d}.000Z"


@st.composite
def message_batches(draw, max_size: int = 12):
    """Lists of messages with unique ids and clustered created_at values."""
    offsets = draw(st.lists(_offsets, max_size=max_size))
    return [
        Message(id=f"m{i}", topic_id="topic", peer_id="peer", content=f"msg {i}", created_at=_iso(off))
        for i, off in enumerate(offsets)
    ]


cursor_instants = _offsets.map(_iso)
