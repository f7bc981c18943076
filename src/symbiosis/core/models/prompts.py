from __future__ import annotations

import json

from symbiosis.core.memory.schemas import CLARIFYING_MOODS, GENERATION_MOODS, ChatTurn, FactType, Topic


def render_history(turns: list[ChatTurn]) -> str:
    return "\n".join(f"{turn.role.value.upper()}: {turn.content}" for turn in turns)


def relationship_prompt(utterance: str) -> str:
    return (
        f'INPUT: "{utterance}"\n'
        "TASK: Identify if the user mentions any PEOPLE or RELATIONSHIPS.\n"
        "If found, return the word AND its formal synonyms.\n\n"
        "EXAMPLE:\n"
        'Input: "My dad is eating" -> Output: ["dad", "father", "parent"]\n'
        'Input: "I hate spinach" -> Output: []\n'
        'Input: "Ferdy is here" -> Output: ["Ferdy"]\n\n'
        'RETURN JSON: { "keywords": [...] }\n'
    )


def analysis_prompt(
    utterance: str,
    history_text: str,
    relationship_context: str,
    today: str,
    self_identity: str,
) -> str:
    types = ", ".join(f'"{item.value}"' for item in FactType)
    topics = ", ".join(item.value for item in Topic)
    schema = {
        "entries": [
            {
                "fact": "...",
                "importance": 8,
                "owner": "...",
                "type": "...",
                "topics": "...",
                "ambiguous": False,
            }
        ],
        "search_keywords": ["Preference", "Food"],
        "query_subject": "...",
    }
    return (
        f'USER_IDENTITY: {self_identity}. (Assume "I", "me" refers to {self_identity}).\n'
        f"CURRENT_DATE: {today}\n"
        f"HISTORY_CONTEXT: {history_text}\n"
        f"RELATIONSHIP_DB: {relationship_context}\n"
        f'INPUT: "{utterance}"\n\n'
        "TASK: Hybrid Analysis\n"
        "1. CONTEXTUAL RESOLUTION:\n"
        "   - Resolve pronouns (he/she/it) based on HISTORY.\n"
        "   - RESOLVE OWNERS using RELATIONSHIP_DB:\n"
        f'     > If INPUT is "Dad hates spinach" and DB says "Ferdy is {self_identity}\'s father", the OWNER is "Ferdy".\n'
        f'     > If DB is empty, default to "{self_identity}\'s Father".\n'
        "2. ATOMIC ENTRIES: Extract new facts to store.\n"
        '   - If the user provides a date or detail (e.g. "In 2022") answering a previous question, '
        "COMBINE it with the context to create a full fact.\n"
        "   - Compare INPUT against HISTORY_CONTEXT and RELATIONSHIP_DB.\n"
        "     > If the fact is ALREADY KNOWN, DO NOT EXTRACT IT. Return empty [].\n"
        "     > Only extract info that is NEW, UPDATED, or CONTRADICTORY.\n"
        "   - Ignore questions/commands.\n"
        "   - OWNER: The Subject of the fact (Use the Real Name if found in DB).\n"
        "   - IMPORTANCE: 1-10.\n"
        f"   - TYPE: Select ONE from: {types}.\n"
        '       Bio = permanent traits, history, relationships, likes/dislikes; Psych = inner thoughts, fears, mental state; '
        "Status = temporary state, location, activity; Log = general events or trivial actions.\n"
        f"   - TOPICS: Select ONE from [{topics}].\n"
        '   - TEMPORAL AMBIGUITY: Set "ambiguous": true IF a specific past event is mentioned without a date.\n'
        "3. SEARCH KEYWORDS: Extract database search terms.\n"
        "   - Include ALL relevant TOPICS from the list above (more than 1) and any named people.\n"
        '     > Example: "How was my relationship with Dad?" -> Keywords: ["Relationship", "History", "Ferdy"]\n'
        "4. QUERY SUBJECT: Who is the user asking about?\n"
        '   - If "Who is Brandon?", subject is "Brandon".\n'
        f'   - If "I am happy", subject is "{self_identity}".\n'
        f'   - Default to "{self_identity}".\n\n'
        f"Output JSON: {json.dumps(schema, ensure_ascii=False)}\n"
    )


def clarifying_prompt(utterance: str, fact: str) -> str:
    schema = {"response": "...", "mood": CLARIFYING_MOODS[0], "roots": []}
    return (
        f'User said: "{utterance}"\n'
        f'Fact: "{fact}"\n'
        "ISSUE: Significant event missing date.\n"
        'INSTRUCTIONS: Ask "When did this happen?" naturally.\n'
        f"VALID MOODS: [{', '.join(CLARIFYING_MOODS)}]\n"
        f"Return JSON: {json.dumps(schema, ensure_ascii=False)}\n"
    )


def generation_prompt(
    question_mode: bool,
    retrieved_context: str,
    history_text: str,
    utterance: str,
    self_identity: str,
) -> str:
    mode = "MODE: INTERROGATION." if question_mode else "MODE: COMPANION."
    schema = {
        "response": "...",
        "mood": "GLOBAL_MOOD",
        "roots": [
            {
                "label": "ROOT_WORD",
                "mood": "SPECIFIC_MOOD",
                "branches": [{"label": "BRANCH_WORD", "mood": "SPECIFIC_MOOD", "leaves": ["LEAF1", "LEAF2"]}],
            }
        ],
    }
    return (
        f"{mode}\n\n"
        f"DATABASE RESULTS:\n{retrieved_context}\n\n"
        f"HISTORY:\n{history_text}\n\n"
        f'User: "{utterance}"\n\n'
        "### TASK ###\n"
        "1. ANALYZE the Database Results and History.\n"
        "2. RESPOND to the User naturally (in character).\n"
        '   - Do NOT talk about "compiling data", "JSON", or "processing". Just talk.\n'
        '   - If you found info, weave it into the conversation (e.g. "I remember you dated Suwandi...").\n'
        "   - If the user asks a question, answer it directly.\n\n"
        "- ROOTS: Array of MAX 3 objects.\n"
        "- ROOT LABEL: MUST be exactly 1 word. UPPERCASE.\n"
        "- BRANCHES: Max 5 branches. Label MUST be exactly 1 word. UPPERCASE.\n"
        "- LEAVES: Max 5 leaves per branch. Text MUST be exactly 1 word. UPPERCASE.\n\n"
        "CRITICAL INSTRUCTIONS:\n"
        "1. DO NOT USE PHRASES. SINGLE WORDS ONLY for labels.\n"
        "2. ASSIGN MOODS: You MUST assign a specific MOOD to every ROOT and BRANCH based on its sentiment.\n"
        f'   - Example: If the branch is "SPINACH" (which {self_identity} hates), mood must be "HATE".\n'
        f'   - Example: If the branch is "MUSIC" (which {self_identity} likes), mood must be "JOYFUL".\n\n'
        f"MOODS: [{', '.join(GENERATION_MOODS)}]\n\n"
        f"Return JSON: {json.dumps(schema, ensure_ascii=False)}\n"
    )
