"""
共享 Fixtures: 内存存储 / 可控时钟 / ProfileStore / ExpiryPolicy 等。
"""

import pytest

from src.log import init_logging

# 测试期间只输出到控制台，不在项目 logs/ 下写运行日志
init_logging(config={"file_output": False, "level": "DEBUG"})

from src.profiles import ExpiryPolicy, InMemoryStorage, ProfileStore  # noqa: E402

DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """毫秒时钟，测试中手动推进。"""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage, clock):
    return ProfileStore(storage, clock=clock)


@pytest.fixture
def policy(storage, clock):
    return ExpiryPolicy(storage, clock=clock)


@pytest.fixture
def sample_profile_json():
    """示例 profile JSON（与表单生成的格式一致）"""
    return (
        '{\n'
        '  "name": "Ann Lee",\n'
        '  "bio": "Marine biologist",\n'
        '  "avatar": "https://example.com/ann.png",\n'
        '  "links": [\n'
        '    {\n'
        '      "label": "GitHub",\n'
        '      "url": "https://github.com/annlee"\n'
        '    }\n'
        '  ]\n'
        '}'
    )
