from app.models import ArtifactType

TRANSCRIPT_START = "<<<TRANSCRIPT_START>>>"
TRANSCRIPT_END = "<<<TRANSCRIPT_END>>>"

SYSTEM_PROMPT = " ".join([
    "You are an extractive academic assistant.",
    "Use ONLY the provided transcript text.",
    "If the transcript lacks information, set the corresponding JSON field to null or an empty list.",
    "Never invent facts, names, equations, or examples not present in the transcript.",
    "Output MUST be a single valid JSON object that conforms to the requested schema.",
])

SCHEMAS: dict[ArtifactType, str] = {
    ArtifactType.summary: """{
  "title": string|null,           // from transcript, or null
  "abstract": string,             // 3-6 sentences, extractive/faithful
  "key_points": string[],         // 5-12 bullets from transcript
  "terms": string[]               // glossary terms if explicitly present
}""",
    ArtifactType.notes: """{
  "outline": [
    {
      "heading": string,
      "bullets": string[]          // bullet points quoted or paraphrased faithfully
    }
  ],
  "equations": string[],          // equations exactly as they appear, or []
  "references": string[]          // sources/figures mentioned explicitly, or []
}""",
    ArtifactType.quiz: """{
  "questions": [
    {
      "type": "mcq"|"short"|"true_false",
      "prompt": string,           // faithful to transcript
      "choices": string[]|null,   // only for mcq
      "answer": string|boolean,   // ground-truth strictly from transcript
      "rationale": string|null    // cite wording from transcript if helpful
    }
  ]
}""",
}


def system_prompt(kind: ArtifactType) -> str:
    return f"{SYSTEM_PROMPT} Task: {kind.value}"


def user_prompt(kind: ArtifactType, transcript: str) -> str:
    return "\n".join([
        "TRANSCRIPT (verbatim):",
        TRANSCRIPT_START,
        transcript,
        TRANSCRIPT_END,
        "",
        "Return JSON with schema:",
        SCHEMAS[kind],
    ])
