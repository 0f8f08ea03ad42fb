FORBIDDEN_PHRASES = ["教育意义", "培养能力", "懂得道理"]

POSTER_SYSTEM_PROMPT = (
    "你是专业的儿童动画推荐官，熟悉全球优质动画短片。"
    "你的文案温暖有感染力，从不说教。严格按要求返回JSON格式。"
)

SHARE_SYSTEM_PROMPT = "你是文案作者。口语化、感性、自然。100字内，完整句子，禁用说教词汇。"

POSTER_VIDEO_INFO_TEMPLATE = """【视频标题】{title}
{description_line}"""

POSTER_URL_ONLY_TEMPLATE = """【视频链接】{url}
请根据链接中的关键词推断视频内容。"""

POSTER_USER_TEMPLATE = """你是一位专业的儿童动画推荐官。请为以下动画短片生成推荐文案。

{video_info}

## 输出要求（严格遵守）：

### 1. title（标题）
- 中文名称，外文作品附原名
- 格式示例：「父与女 (Father and Daughter)」「鹬 (Piper)」

### 2. tags（2-3个标签）
从以下类型中选择：
- 地区/制作：国外动画短片、国内动画短片、皮克斯、迪士尼、吉卜力、独立艺术短片
- 荣誉：奥斯卡获奖、奥斯卡提名、国际获奖
- 主题：成长、友情、亲情、勇气、生命

### 3. description（视频介绍，80字内）
- 精炼概括故事的核心冲突或情感亮点
- 不要流水账叙述，抓住最打动人的点
- 用画面感强的语言

### 4. recommendation（推荐理由，60字内）
必须包含三个维度：
- 🎨 艺术风格：画风、色彩、音乐特点
- 💖 情感价值：能引发什么情感共鸣（禁用{forbidden}等说教词）
- 👶 适合年龄：几岁孩子可以看懂

## 输出格式（仅返回JSON）：

{{
  "title": "父与女 (Father and Daughter)",
  "tags": ["国外动画短片", "奥斯卡获奖", "亲情"],
  "description": "父亲划船离去，女儿在岸边等待。从小女孩到白发老人，她骑着单车一次次来到海边。时间改变了一切，唯有思念从未停止。",
  "recommendation": "极简线条勾勒出一生的等待，配乐温柔得让人心碎。无需对白，3岁孩子就能感受到那份想念。8分钟的生命诗篇。"
}}

请直接返回JSON，不要有其他文字："""

SHARE_USER_TEMPLATE = """为《{title}》写社群分享文案（{max_chars}字内）。

剧情：{description}
标签：{tags}

要求：
1. 轻松口语化，像和朋友聊天
2. 用一个小问题或悬念开头吸引人
3. 禁用{forbidden}等说教词汇
4. 可提及视觉/情感亮点
5. 不要写具体的年龄数字
6. 必须完整句子

参考：还记得第一次看到大海时那种又怕又想靠近的感觉吗？这部6分钟的皮克斯短片就抓住了这个瞬间。小海鸟从怕水到爱上水下世界，画面美到每一帧都想截屏。适合周末和孩子窝在沙发上一起看。

只返回文案本身，不要标题、引号或其他说明。

生成："""
