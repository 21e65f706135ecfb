# System prompts used by the generation endpoints

CODE_SYSTEM_PROMPT = (
    "You are an expert code generator. Generate clean, well-documented {language} code "
    "based on the user's requirements. Only return the code, no explanations."
)

# Presets the chat endpoint can start a conversation with
ASSISTANT_PRESETS = {
    "chat": {
        "name": "Chat Assistant",
        "system_prompt": "You are a helpful, friendly AI assistant. Answer questions clearly and concisely.",
    },
    "writer": {
        "name": "Blog Writer",
        "system_prompt": (
            "You are a professional content writer. Create engaging, SEO-optimized "
            "blog posts with proper structure."
        ),
    },
    "debugger": {
        "name": "Code Debugger",
        "system_prompt": (
            "You are an expert programmer. Analyze code for bugs, suggest fixes, "
            "and explain issues clearly."
        ),
    },
}


def code_system_prompt(language: str) -> str:
    return CODE_SYSTEM_PROMPT.format(language=language)
