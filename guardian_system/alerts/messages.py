"""
Alert texts in the languages a subject profile can select ('en', 'ar').
"""

from dataclasses import dataclass

DEFAULT_LANGUAGE = 'en'

PROMPT_TEXT = {
    'en': {
        'title': "Are you okay?",
        'body': "A sudden fall has been detected by our smart sensors. "
                "Do you need immediate medical assistance?",
        'confirm': "I'm perfectly fine",
        'help': "No, send help",
    },
    'ar': {
        'title': "هل أنت بخير؟",
        'body': "لقد تم رصد سقوط مفاجئ بواسطة حساساتنا الذكية. هل تحتاج إلى مساعدة طبية عاجلة؟",
        'confirm': "أنا بخير تماماً",
        'help': "أحتاج للمساعدة",
    },
}

ESCALATION_TEXT = {
    'en': "🚨 Emergency alert: a fall was detected and help was requested (ID: {subject_id})",
    'ar': "🚨 تنبيه استغاثة: تم رصد سقوط وطلب المساعدة (الرقم القومي: {subject_id})",
}

ESCALATION_RESULT_TEXT = {
    'en': {
        True: "🚨 Emergency alert sent to your family! (ID: {subject_id})",
        False: "✗ The emergency alert could not be sent (ID: {subject_id}). Please call for help directly.",
    },
    'ar': {
        True: "🚨 تم إرسال تنبيه استغاثة فوري لعائلتك! (الرقم القومي: {subject_id})",
        False: "✗ تعذر إرسال تنبيه الاستغاثة (الرقم القومي: {subject_id}). يرجى طلب المساعدة مباشرة.",
    },
}


@dataclass(frozen=True)
class FallPrompt:
    """Confirmation prompt handed to the presentation layer."""

    subject_id: str
    title: str
    body: str
    confirm_label: str
    help_label: str


def _language(language: str) -> str:
    return language if language in PROMPT_TEXT else DEFAULT_LANGUAGE


def fall_prompt(subject_id: str, language: str = DEFAULT_LANGUAGE) -> FallPrompt:
    text = PROMPT_TEXT[_language(language)]
    return FallPrompt(
        subject_id=subject_id,
        title=text['title'],
        body=text['body'],
        confirm_label=text['confirm'],
        help_label=text['help'],
    )


def escalation_message(subject_id: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Message delivered to the emergency contact."""
    return ESCALATION_TEXT[_language(language)].format(subject_id=subject_id)


def escalation_result_message(subject_id: str, delivered: bool, language: str = DEFAULT_LANGUAGE) -> str:
    """Feedback shown to the subject after pressing "send help"."""
    return ESCALATION_RESULT_TEXT[_language(language)][delivered].format(subject_id=subject_id)
