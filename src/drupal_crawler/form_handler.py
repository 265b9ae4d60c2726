"""
Form detection, auto-fill and submission for Drupal edit/add pages.

Two submission paths share the same fill heuristics (form_values.py):

- static: the form is read from parsed markup and posted once with requests
- scripted: the form is filled in a live Playwright page and activated,
  with up to MAX_SUBMIT_ATTEMPTS attempts judged by a URL change

SAFETY: forms requiring file uploads or media widgets are never submitted,
and destructive (delete) forms are filtered out by the crawl loop.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import yaml
from bs4.element import Tag

from drupal_crawler.constants import (
    CLICK_TIMEOUT_MS,
    MAX_LOG_SNIPPET_LENGTH,
    MAX_SUBMIT_ATTEMPTS,
    MEDIA_EXEMPT_KEYWORDS,
    MEDIA_KEYWORDS,
    NON_DATA_INPUT_TYPES,
    OVERLAY_SELECTORS,
    PLACEHOLDER_OPTION_VALUES,
    REQUIRED_LABEL_SELECTOR,
    RETRY_BACKOFF_SECONDS,
    SUBMIT_SELECTORS,
    SUBMIT_SETTLE_SECONDS,
)
from drupal_crawler.document import Document
from drupal_crawler.form_values import determine_fill_value, has_existing_value
from drupal_crawler.messages import extract_messages, join_snippets, normalize_text
from drupal_crawler.models import FormStatus, Message, Severity

logger = logging.getLogger(__name__)


# Inline error markers checked when a failed POST carries no regular messages
INLINE_ERROR_SELECTOR = ".messages--error, .form-item--error-message, .error"

FIELD_SELECTOR = "input, textarea, select"

INVALID_FIELDS_JS = """
form => Array.from(form.querySelectorAll(
    'input:not([type=hidden]):not([type=submit]):not([type=button]), textarea, select'
)).filter(inp =>
    (inp.validity && !inp.validity.valid) ||
    (inp.hasAttribute('required') && (!inp.value || inp.value.trim() === ''))
)
"""

SET_VALUE_JS = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

RADIO_GROUP_CHECKED_JS = """
el => Array.from(document.getElementsByName(el.name)).some(r => r.checked)
"""

CKEDITOR5_PRESENT_JS = """
id => {
    const textarea = document.getElementById(id);
    const container = textarea && textarea.nextElementSibling;
    return !!(container && container.classList.contains('ck-editor'));
}
"""

CKEDITOR5_FILL_JS = """
([id, text]) => {
    const textarea = document.getElementById(id);
    const container = textarea.nextElementSibling;
    const editable = container.querySelector('.ck-editor__editable');
    if (editable) {
        editable.innerHTML = '<p>' + text + '</p>';
        editable.dispatchEvent(new Event('input', { bubbles: true }));
        textarea.value = text;
    }
}
"""

ACE_PRESENT_JS = """
id => document.getElementById(id) !== null && typeof ace !== 'undefined'
"""

ACE_FILL_JS = """
([id, text]) => {
    try {
        const editor = ace.edit(id);
        editor.setValue(text, -1);
        editor.clearSelection();
    } catch (e) {
        console.log('ACE error:', e);
    }
}
"""

HIDE_OVERLAYS_JS = """
selector => document.querySelectorAll(selector).forEach(o => { o.style.display = 'none'; })
"""


def is_media_requirement(label: str) -> bool:
    """True for required-field labels naming a media picker widget."""
    text = (label or "").lower()
    if any(k in text for k in MEDIA_EXEMPT_KEYWORDS):
        return False
    return any(k in text for k in MEDIA_KEYWORDS)


def is_placeholder_option(value: Optional[str]) -> bool:
    return value is None or value.strip() in PLACEHOLDER_OPTION_VALUES


def find_submit_control(form: Tag) -> Optional[Tag]:
    """First submit control of a parsed form, trying SUBMIT_SELECTORS in order."""
    for selector in SUBMIT_SELECTORS:
        control = form.select_one(selector)
        if control is not None:
            return control
    return None


class FormHandler:
    """Fills and submits forms using the fill-value table."""

    def __init__(
        self,
        overrides: Optional[Dict[str, str]] = None,
        values_path: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_SUBMIT_ATTEMPTS,
    ):
        """
        Initialize form handler.

        Args:
            overrides: Exact field-name to value overrides
            values_path: Optional YAML file with more overrides
            sleep: Sleep function used for settle and retry delays
            max_attempts: Attempt bound for scripted submission
        """
        self.overrides: Dict[str, str] = dict(overrides or {})
        self._sleep = sleep
        self.max_attempts = max_attempts

        if values_path and Path(values_path).exists():
            self._load_values(Path(values_path))

    def _load_values(self, yaml_path: Path):
        """Load fill-value overrides from a YAML file.

        Accepts either a flat mapping of field names to values or a mapping
        under a top-level ``values`` key.
        """
        try:
            with open(yaml_path) as f:
                data = yaml.safe_load(f) or {}

            values = data.get("values", data) if isinstance(data, dict) else {}
            for name, value in values.items():
                if value is not None:
                    self.overrides[str(name)] = str(value)
            if values:
                logger.info(f"Loaded {len(values)} fill value override(s) from {yaml_path}")
        except Exception as e:
            logger.warning(f"Could not load fill values from {yaml_path}: {e}")

    def fill_value(self, name: str, field_type: str = "", value: str = "", placeholder: str = "") -> str:
        return determine_fill_value(name, field_type, value, placeholder, self.overrides)

    # ------------------------------------------------------------------
    # Static path (parsed markup + requests)
    # ------------------------------------------------------------------

    def build_form_data(self, form: Tag) -> List[Tuple[str, str]]:
        """Name/value pairs to POST for a parsed form.

        Hidden fields are carried through unchanged, checkboxes are sent as
        checked, the checked (else first) radio of each group is sent, selects
        honor a pre-selected option, everything else goes through the fill
        table.
        """
        data: List[Tuple[str, str]] = []
        processed = set()
        checked_radios = {
            r.get("name") for r in form.select("input[type=radio]") if r.has_attr("checked")
        }

        for field in form.select(FIELD_SELECTOR):
            name = field.get("name") or ""
            field_type = (field.get("type") or "").lower()
            value = field.get("value") or ""
            tag_name = field.name

            if not name or name in processed:
                continue
            if tag_name == "input" and field_type in NON_DATA_INPUT_TYPES:
                continue

            if field_type == "hidden":
                data.append((name, value))
                processed.add(name)
                continue

            if field_type == "checkbox":
                data.append((name, value or "1"))
                processed.add(name)
                continue

            if field_type == "radio":
                if name in checked_radios and not field.has_attr("checked"):
                    continue
                data.append((name, value))
                processed.add(name)
                continue

            if tag_name == "select":
                choice = self._select_static_option(field)
                if choice is not None:
                    data.append((name, choice))
                    processed.add(name)
                continue

            if tag_name == "textarea":
                data.append((name, self.fill_value(name, "textarea", field.get_text())))
                processed.add(name)
                continue

            data.append((name, self.fill_value(name, field_type, value, field.get("placeholder") or "")))
            processed.add(name)

        return data

    @staticmethod
    def _select_static_option(select: Tag) -> Optional[str]:
        selected = select.select_one("option[selected]")
        if selected is not None:
            return selected.get("value", selected.get_text(strip=True))
        for option in select.find_all("option"):
            value = option.get("value")
            if not is_placeholder_option(value):
                return value
        return None

    def submit_static(self, session, document: Document, form: Tag, timeout: float) -> str:
        """Post a parsed form once and classify the response.

        Args:
            session: requests.Session carrying the crawl cookies
            document: Page the form came from (used for action and referrer)
            form: The form element
            timeout: Request timeout in seconds

        Returns:
            Form Submission status string
        """
        action = document.form_action(form)

        if form.select("input[type=file]"):
            logger.info(f"Skipping form submission (requires file upload): {action}")
            return FormStatus.SKIPPED_FILE_UPLOAD

        submit = find_submit_control(form)
        if submit is None:
            logger.warning(f"No submit button found in form posting to {action}")
            return FormStatus.NO_SUBMIT_BUTTON

        try:
            data = self.build_form_data(form)
            if submit.get("name"):
                data.append((submit["name"], submit.get("value", "")))

            logger.info(f"Attempting to submit form to {action} with {len(data)} field(s)")
            response = session.post(
                action,
                data=data,
                headers={"Referer": document.url},
                timeout=timeout,
                allow_redirects=True,
            )
            return self._classify_post_response(action, response)

        except Exception as e:
            logger.error(f"Failed to submit form at {action}: {e}")
            return FormStatus.error(str(e))

    def _classify_post_response(self, action: str, response) -> str:
        status_code = response.status_code
        final_url = response.url
        messages = self._response_messages(final_url, response.text)

        # Drupal redirects on success and re-renders with 200 on validation errors
        if status_code in (302, 303) or final_url != action:
            logger.info(f"SUCCESS: form submitted, redirected to {final_url}")
            return FormStatus.success(final_url)

        snippets = join_snippets(messages, MAX_LOG_SNIPPET_LENGTH)
        if status_code == 200:
            if snippets:
                logger.warning(f"FAILED: validation errors: {snippets}")
            else:
                logger.warning("FAILED: form re-rendered without messages, check required fields")
            return FormStatus.validation_failed(snippets)

        logger.warning(f"Form submitted with status {status_code}")
        return FormStatus.submitted(status_code)

    @staticmethod
    def _response_messages(url: str, html: str) -> List[Message]:
        document = Document(url, html or "")
        messages = extract_messages(document)
        if messages:
            return messages
        inline = []
        for element in document.soup.select(INLINE_ERROR_SELECTOR):
            text = normalize_text(element.get_text(" "))
            if text:
                inline.append(Message(severity=Severity.ERROR, text=text))
        return inline

    # ------------------------------------------------------------------
    # Scripted path (Playwright page)
    # ------------------------------------------------------------------

    @staticmethod
    def locate_form(page, form_index: int):
        """Live form handle at form_index, or None if the page no longer has it."""
        forms = page.query_selector_all("form")
        if 0 <= form_index < len(forms):
            return forms[form_index]
        return None

    def check_scripted_skips(self, form) -> Optional[str]:
        """Skip status for forms needing media pickers or uploads, else None."""
        try:
            for label in form.query_selector_all(REQUIRED_LABEL_SELECTOR):
                text = (label.inner_text() or "").strip()
                if is_media_requirement(text):
                    reason = FormStatus.skipped_media(text)
                    logger.info(f"⊗ {reason}")
                    return reason

            if form.query_selector_all("input[type=file]"):
                logger.info("⊗ SKIPPED: form requires file upload")
                return FormStatus.SKIPPED_FILE_UPLOAD
        except Exception as e:
            logger.debug(f"Skip checks failed, continuing: {e}")
        return None

    def submit_scripted(self, page, form_index: int) -> str:
        """Fill and submit a form in a live page, retrying on failure.

        The first attempt fills every field. Later attempts refill only the
        fields that still fail native validation or are required but empty.
        Success means the page URL changed after activation.

        Args:
            page: Playwright page showing the form
            form_index: Position of the form among the page's forms

        Returns:
            Form Submission status string
        """
        form = self.locate_form(page, form_index)
        if form is None:
            return FormStatus.error("form not found in rendered page")

        skip = self.check_scripted_skips(form)
        if skip:
            return skip

        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.info(f"Form submission attempt {attempt}/{self.max_attempts}")
                form = self.locate_form(page, form_index) or form
                original_url = page.url

                if attempt == 1:
                    filled = self.fill_all_fields(page, form)
                    logger.info(f"Filled {filled} field(s)")
                else:
                    refilled = self.refill_invalid_fields(page, form)
                    logger.info(f"Refilled {refilled} missing/invalid field(s)")

                button = self.find_submit_handle(form)
                if button is None:
                    logger.warning("❌ No submit button found")
                    return FormStatus.NO_SUBMIT_BUTTON

                method = self.activate_submit(page, form, button)
                if method is None:
                    logger.warning("❌ All click methods failed")
                    return FormStatus.ALL_CLICKS_FAILED

                self._sleep(SUBMIT_SETTLE_SECONDS)

                new_url = page.url
                if new_url != original_url:
                    logger.info(f"✅ Submitted via {method}, redirected to {new_url}")
                    return FormStatus.success(new_url)

                logger.warning("❌ Stayed on same page after submit")
                messages = extract_messages(Document(new_url, page.content()))
                if messages:
                    logger.warning(f"ERRORS: {join_snippets(messages, MAX_LOG_SNIPPET_LENGTH)}")

                if attempt < self.max_attempts:
                    self._sleep(RETRY_BACKOFF_SECONDS)

            except Exception as e:
                logger.error(f"Form submission error (attempt {attempt}): {e}")
                if attempt < self.max_attempts:
                    self._sleep(RETRY_BACKOFF_SECONDS)
                else:
                    return FormStatus.failed_error(str(e))

        logger.warning(f"❌ Failed after {self.max_attempts} attempts")
        return FormStatus.failed_after(self.max_attempts)

    def fill_all_fields(self, page, form) -> int:
        """Fill every fillable field of a live form. Returns the count touched."""
        count = 0
        radio_groups = set()
        for element in form.query_selector_all(FIELD_SELECTOR):
            try:
                name = element.get_attribute("name") or ""
                field_type = (element.get_attribute("type") or "").lower()
                if field_type == "radio":
                    if name in radio_groups:
                        continue
                    radio_groups.add(name)
                if self._fill_element(page, element, refill=False):
                    count += 1
            except Exception as e:
                logger.debug(f"Could not fill field: {e}")
        return count

    def refill_invalid_fields(self, page, form) -> int:
        """Refill only fields failing validation. Returns the count touched."""
        handle = form.evaluate_handle(INVALID_FIELDS_JS)
        invalid = [p.as_element() for p in handle.get_properties().values()]
        invalid = [el for el in invalid if el is not None]
        if not invalid:
            logger.info("No missing fields found")
            return 0

        count = 0
        for element in invalid:
            try:
                if self._fill_element(page, element, refill=True):
                    count += 1
            except Exception as e:
                logger.debug(f"Could not refill field: {e}")
        return count

    def _fill_element(self, page, element, refill: bool) -> bool:
        """Fill one live field. On refill the current value is ignored."""
        name = element.get_attribute("name") or ""
        field_type = (element.get_attribute("type") or "").lower()
        tag_name = element.evaluate("el => el.tagName.toLowerCase()")

        if not name:
            return False
        if tag_name == "input" and field_type in NON_DATA_INPUT_TYPES:
            return False
        if field_type == "hidden":
            return False

        if field_type == "checkbox":
            if element.is_checked():
                return False
            element.evaluate("el => el.click()")
            return True

        if field_type == "radio":
            if element.is_checked() or element.evaluate(RADIO_GROUP_CHECKED_JS):
                return False
            element.evaluate("el => el.click()")
            return True

        if tag_name == "select":
            return self._select_first_option(element)

        current = "" if refill else (element.evaluate("el => el.value") or "")
        if has_existing_value(current):
            return False

        if tag_name == "textarea":
            content = self.fill_value(name, "textarea")
            if content:
                self._fill_textarea(page, element, content)
                return True
            return False

        value = self.fill_value(name, field_type, "", element.get_attribute("placeholder") or "")
        if not value:
            return False
        element.evaluate(SET_VALUE_JS, value)
        return True

    @staticmethod
    def _select_first_option(select_element) -> bool:
        """Select the first option with a real (non-placeholder) value."""
        for option in select_element.query_selector_all("option"):
            value = option.get_attribute("value")
            if not is_placeholder_option(value):
                select_element.select_option(value=value)
                return True
        return False

    def _fill_textarea(self, page, element, content: str) -> str:
        """Fill a textarea, going through CKEditor 5 or ACE when present.

        Returns:
            Which widget received the value: 'ckeditor5', 'ace' or 'textarea'
        """
        textarea_id = element.get_attribute("id") or ""
        if textarea_id:
            if element.get_attribute("data-ckeditor5-id") and page.evaluate(CKEDITOR5_PRESENT_JS, textarea_id):
                page.evaluate(CKEDITOR5_FILL_JS, [textarea_id, content])
                logger.debug(f"CKEditor 5 filled: {textarea_id}")
                return "ckeditor5"

            ace_id = f"{textarea_id}-ace-editor"
            if page.evaluate(ACE_PRESENT_JS, ace_id):
                page.evaluate(ACE_FILL_JS, [ace_id, content])
                logger.debug(f"ACE editor filled: {ace_id}")
                return "ace"

        element.evaluate(SET_VALUE_JS, content)
        return "textarea"

    @staticmethod
    def find_submit_handle(form):
        """First submit control of a live form, trying SUBMIT_SELECTORS in order."""
        for selector in SUBMIT_SELECTORS:
            buttons = form.query_selector_all(selector)
            if buttons:
                logger.debug(f"Found submit button with selector: {selector}")
                return buttons[0]
        return None

    def activate_submit(self, page, form, button) -> Optional[str]:
        """Activate the submit control, trying each strategy until one does not raise.

        Returns:
            Name of the strategy that worked, or None if all failed
        """
        try:
            button.evaluate("b => b.scrollIntoView({behavior: 'instant', block: 'center'})")
            self._sleep(0.2)
            page.evaluate(HIDE_OVERLAYS_JS, OVERLAY_SELECTORS)
        except Exception as e:
            logger.debug(f"Could not prepare submit button: {e}")

        strategies = [
            ("javascript", lambda: button.evaluate("b => b.click()")),
            ("pointer", lambda: self._pointer_click(page, button)),
            ("native", lambda: button.click(timeout=CLICK_TIMEOUT_MS)),
            ("form-submit", lambda: form.evaluate("f => f.submit()")),
        ]
        for method, activate in strategies:
            try:
                logger.debug(f"Trying click method: {method}")
                activate()
                return method
            except Exception as e:
                logger.debug(f"✗ {method} failed: {e}")
        return None

    @staticmethod
    def _pointer_click(page, button) -> None:
        box = button.bounding_box()
        if box is None:
            raise RuntimeError("submit control has no bounding box")
        x = box["x"] + box["width"] / 2
        y = box["y"] + box["height"] / 2
        page.mouse.move(x, y)
        page.mouse.click(x, y)
