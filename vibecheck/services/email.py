"""Email service using Resend for guardian verification codes."""

from __future__ import annotations

import html

import resend

from vibecheck import config

# Initialize Resend with API key
resend.api_key = config.settings.RESEND_API_KEY

DEFAULT_LANGUAGE = "en"

_SUBJECTS = {
    "en": "Verify your connection to {name}",
    "es": "Verifica tu conexión con {name}",
    "fr": "Vérifiez votre connexion avec {name}",
    "ar": "تحقق من اتصالك بـ {name}",
}


def guardian_code_subject(display_name: str, language: str | None) -> str:
    """Localized subject line; unknown languages fall back to English."""
    template = _SUBJECTS.get((language or DEFAULT_LANGUAGE).lower(), _SUBJECTS[DEFAULT_LANGUAGE])
    return template.format(name=display_name)


async def send_guardian_code(
    email: str,
    code: str,
    display_name: str,
    language: str | None = None,
    expiry_minutes: int = 15,
) -> None:
    """
    Send a guardian verification code via Resend.

    Args:
        email: Guardian's email address
        code: Plaintext 6-digit code
        display_name: Child's name shown in the email
        language: Child's preferred language for the subject line
        expiry_minutes: Code validity shown to the guardian

    Raises:
        Exception: If email sending fails
    """
    safe_name = html.escape(display_name)

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Parent Verification Code</title>
        <style>
            body {{
                font-family: Arial, sans-serif;
                line-height: 1.6;
                color: #333;
                margin: 0;
                padding: 0;
            }}
            .container {{
                max-width: 600px;
                margin: 0 auto;
                padding: 24px;
            }}
            .code-box {{
                background: #f5f5f5;
                padding: 20px;
                margin: 20px 0;
                border-radius: 8px;
                text-align: center;
            }}
            .code-box .label {{
                margin: 0;
                font-size: 14px;
                color: #666;
            }}
            .code-box .code {{
                font-size: 42px;
                font-weight: bold;
                color: #4F46E5;
                margin: 10px 0;
                letter-spacing: 8px;
            }}
            .note {{
                color: #666;
                font-size: 14px;
            }}
            .footer {{
                border-top: 1px solid #eee;
                margin-top: 30px;
                padding-top: 16px;
                color: #999;
                font-size: 12px;
            }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>Parent Verification Code</h1>
            <p>Hello,</p>
            <p><strong>{safe_name}</strong> is requesting to verify you as their parent/guardian on Vibe Check.</p>
            <div class="code-box">
                <p class="label">Your verification code:</p>
                <p class="code">{code}</p>
            </div>
            <p class="note"><strong>This code will expire in {expiry_minutes} minutes.</strong></p>
            <p class="note">If you didn't request this, you can safely ignore this email.</p>
            <div class="footer">
                <p>Vibe Check - Mental Wellness for All Ages</p>
            </div>
        </div>
    </body>
    </html>
    """

    # Plain text fallback
    text_content = f"""
    Parent Verification Code

    {display_name} is requesting to verify you as their parent/guardian on Vibe Check.

    Your verification code: {code}

    This code will expire in {expiry_minutes} minutes.

    If you didn't request this, you can safely ignore this email.
    """

    params = {
        "from": config.settings.EMAIL_FROM,
        "to": [email],
        "subject": guardian_code_subject(display_name, language),
        "html": html_content,
        "text": text_content,
    }

    resend.Emails.send(params)
