import re
import urllib.parse
from typing import Any

_TWITTER_EPOCH_MS = 1288834974657

# Private-use unicode icons some Nitter versions prepend to stat numbers
_ICON_CHARS = re.compile("[%s-%s%s-%s]" % (chr(0xF000), chr(0xF8FF), chr(0xF0000), chr(0xFFFFD)))

_ANCHOR = re.compile(r'^- link \[e\d+\]:$')
_STATUS_URL = re.compile(r'^- /url:\s+/(\w+)/status/(\d+)#m$')
_NAMED_LINK = re.compile(r'^- link "([^"]*)"\s*(\[e\d+\])?:?$')
_HANDLE_LINK = re.compile(r'^- link "@(\w+)"\s*(\[e\d+\])?:?$')
_RELATIVE_TIME = re.compile(r'^\d+[smhd]$')
_ABSOLUTE_TIME = re.compile(r'^[A-Z][a-z]{2} \d+(?:, \d{4})?$')
_MEDIA_URL = re.compile(r'^- /url:\s+/pic/orig/(.+)$')
_RETWEET_LABEL = re.compile(r'^(?:\S+ ){0,3}retweeted$')

_SKIP_LABELS = {"pinned tweet", "replying to", ""}
_NAV_LINKS = {
    "nitter", "logo", "more replies", "tweets", "tweets & replies",
    "media", "search", "pinned tweet", "retweeted", "load more",
}


def _snowflake_to_ms(tweet_id: str) -> int:
    try:
        return (int(tweet_id) >> 22) + _TWITTER_EPOCH_MS
    except (ValueError, OverflowError):
        return 0


def _parse_stats_from_text(raw: str) -> tuple[str, int, int, int, int]:
    """Separate trailing engagement stats from a text line.

    Nitter appends stats with 2+ spaces ("Some post  1   22  4,418") or
    emits a pure stats line ("1   22  4,418").

    Returns (cleaned_text, replies, retweets, likes, views).
    """
    text = _ICON_CHARS.sub('', raw.strip().strip('"')).strip()
    if not text:
        return ('', 0, 0, 0, 0)

    if re.fullmatch(r'[\d,\s]+', text):
        text_part, stats = '', text
    else:
        m = re.match(r'^(.*?)\s{2,}([\d,]+(?:\s+[\d,]+){1,3})\s*$', text)
        if not m:
            return (text, 0, 0, 0, 0)
        text_part, stats = m.group(1).strip(), m.group(2)

    nums = [int(n.replace(',', '')) for n in re.findall(r'[\d,]+', stats)]
    replies = retweets = likes = views = 0
    if len(nums) >= 4:
        replies, retweets, likes, views = nums[:4]
    elif len(nums) == 3:
        replies, retweets, likes = nums
    elif len(nums) == 2:
        replies, likes = nums
    elif len(nums) == 1:
        likes = nums[0]

    return (text_part, replies, retweets, likes, views)


def extract_user_info(snapshot: str, username: str) -> dict[str, Any]:
    """Parse the profile header of a Nitter page.

    Returns dict with: username, display_name, bio, joined,
    tweets_count, followers, following.
    """
    info: dict[str, Any] = {
        "username": username,
        "display_name": "",
        "bio": "",
        "joined": "",
        "tweets_count": 0,
        "followers": 0,
        "following": 0,
    }
    counters = {"Tweets": "tweets_count", "Followers": "followers", "Following": "following"}

    for line in snapshot.splitlines():
        line = line.strip()

        if not info["display_name"]:
            m = _NAMED_LINK.match(line)
            if m and m.group(1) and m.group(1)[0] not in "@#":
                name = m.group(1).strip()
                if name.lower() not in _NAV_LINKS and name.lower() != username.lower():
                    info["display_name"] = name

        if not info["bio"] and line.startswith("- paragraph:"):
            bio = line.removeprefix("- paragraph:").strip()
            if bio and "Joined" not in bio:
                info["bio"] = bio

        if not info["joined"]:
            m = re.search(r"Joined\s+(.+)", line)
            if m:
                info["joined"] = m.group(1).strip().strip('"')

        for label, key in counters.items():
            m = re.search(rf"{label}\s+([\d,]+)", line)
            if m:
                info[key] = int(m.group(1).replace(",", ""))

    return info


def _find_post_anchors(lines: list[str]) -> list[tuple[int, str, str]]:
    """Return (line_index, author, post_id) for each post block start.

    A block starts with a bare link followed by a status URL. Packed anchors
    at the top of the page (the table of contents) are skipped: a real block
    is followed by a named link or a text line before the next anchor.
    """
    anchors: list[tuple[int, str, str]] = []
    n = len(lines)
    for i in range(n - 1):
        if not _ANCHOR.match(lines[i]):
            continue
        url = _STATUS_URL.match(lines[i + 1])
        if not url:
            continue
        for j in range(i + 2, min(n, i + 8)):
            if _NAMED_LINK.match(lines[j]) or lines[j].startswith("- text:"):
                anchors.append((i, url.group(1), url.group(2)))
                break
            if _ANCHOR.match(lines[j]) or lines[j].startswith("- list:"):
                break
    return anchors


def _parse_block(block: list[str], path_author: str, post_id: str) -> dict[str, Any]:
    author_name = None
    handles: list[str] = []
    time_ago = None
    text_parts: list[str] = []
    stats: tuple[int, int, int, int] | None = None
    media: list[str] = []
    is_retweet = False
    reply_to = None
    replying = False

    for line in block:
        handle = _HANDLE_LINK.match(line)
        if handle:
            handles.append(handle.group(1))
            if replying and reply_to is None:
                reply_to = handle.group(1)
            continue

        named = _NAMED_LINK.match(line)
        if named:
            name = named.group(1).strip()
            if _RELATIVE_TIME.match(name) or _ABSOLUTE_TIME.match(name):
                time_ago = time_ago or name
            elif name and name[0] not in "@#" and not author_name and name.lower() not in _NAV_LINKS:
                author_name = name
            continue

        if line.startswith("- text:"):
            raw = line.removeprefix("- text:").strip()
            text_part, rc, rt, lk, vw = _parse_stats_from_text(raw)
            if stats is None and (lk or rc):
                stats = (rc, rt, lk, vw)
            label = text_part.lower()
            if _RETWEET_LABEL.match(label):
                is_retweet = True
            elif label.startswith("replying to"):
                replying = True
            elif label not in _SKIP_LABELS:
                text_parts.append(text_part)
            continue

        pic = _MEDIA_URL.match(line)
        if pic:
            decoded = urllib.parse.unquote(pic.group(1))
            if decoded.startswith("media/"):
                url = f"https://pbs.twimg.com/media/{decoded[6:]}"
                if url not in media:
                    media.append(url)

    replies, retweets, likes, views = stats or (0, 0, 0, 0)
    return {
        "id": post_id,
        "username": handles[0] if handles else path_author,
        "author_name": author_name,
        "text": " ".join(text_parts).strip(),
        "timestamp_ms": _snowflake_to_ms(post_id),
        "likes": likes,
        "retweets": retweets,
        "replies": replies,
        "views": views,
        "media": media,
        "time_ago": time_ago,
        "is_retweet": is_retweet,
        "reply_to": reply_to,
    }


def extract_posts(snapshot: str) -> list[dict[str, Any]]:
    """Parse a Nitter accessibility snapshot into post dicts, in page order.

    Each dict has: id, username, author_name, text, timestamp_ms, likes,
    retweets, replies, views, media, time_ago, is_retweet, reply_to.
    ``reply_to`` is the handle from a "Replying to @x" marker, if any.
    Posts repeated on the page (pinned posts) are kept once.
    """
    lines = [line.strip() for line in snapshot.splitlines()]
    anchors = _find_post_anchors(lines)

    posts: list[dict[str, Any]] = []
    seen: set[str] = set()
    for idx, (start, author, post_id) in enumerate(anchors):
        end = anchors[idx + 1][0] if idx + 1 < len(anchors) else len(lines)
        if post_id in seen:
            continue
        seen.add(post_id)
        posts.append(_parse_block(lines[start + 2:min(end, start + 60)], author, post_id))
    return posts


def extract_conversation(snapshot: str, status_id: str) -> list[dict[str, Any]]:
    """Return the ancestors of ``status_id`` on its status page, oldest first,
    followed by the status itself.

    Replies shown below the main post are dropped. Returns an empty list when
    the status is not on the page.
    """
    posts = extract_posts(snapshot)
    for idx, post in enumerate(posts):
        if post["id"] == status_id:
            return posts[:idx + 1]
    return []
