"""Page-side script builders.

Every script is a fixed JavaScript function literal. Caller-supplied values
(selectors, credentials, names, URLs) are never spliced into the source:
``call()`` JSON-encodes them as arguments, so a quote or backslash in a value
cannot change the script.
"""

from __future__ import annotations

import json
from typing import Any


def call(function_source: str, *args: Any) -> str:
    """Build an expression invoking ``function_source`` with JSON arguments."""
    encoded = ", ".join(json.dumps(arg) for arg in args)
    return f"({function_source})({encoded})"


SELECTOR_EXISTS = "(selector) => !!document.querySelector(selector)"

LOCATION_HREF = "() => window.location.href"

DOCUMENT_TITLE = "() => document.title"

BODY_HTML_SNIPPET = "(limit) => (document.body?.innerHTML || '').substring(0, limit)"

# Native setter so React/Vue-style wrappers that intercept `.value =` still see the change.
FILL_INPUT = """(selector, value) => {
  const el = document.querySelector(selector);
  if (!el) throw new Error('Element not found: ' + selector);
  const proto = el instanceof HTMLTextAreaElement
    ? HTMLTextAreaElement.prototype
    : HTMLInputElement.prototype;
  const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
  setter.call(el, value);
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.dispatchEvent(new Event('change', { bubbles: true }));
  return true;
}"""

CLICK = """(selector) => {
  const el = document.querySelector(selector);
  el?.click();
  return !!el;
}"""

CLICK_BY_TEXT = """(selector, needles) => {
  const wanted = needles.map((n) => n.toLowerCase());
  for (const el of document.querySelectorAll(selector)) {
    const text = (el.innerText || el.textContent || '').trim().toLowerCase();
    if (wanted.some((n) => text.includes(n))) {
      el.click();
      return true;
    }
  }
  return false;
}"""

PRESS_ENTER = """(selector) => {
  const el = document.querySelector(selector);
  if (!el) return false;
  for (const type of ['keydown', 'keypress', 'keyup']) {
    el.dispatchEvent(new KeyboardEvent(type, {
      key: 'Enter', code: 'Enter', keyCode: 13, which: 13, bubbles: true,
    }));
  }
  return true;
}"""

TEXT_CONTENT = """(selector) => {
  const el = document.querySelector(selector);
  return el ? (el.textContent || '').trim() : null;
}"""

ATTRIBUTE = """(selector, name) => {
  const el = document.querySelector(selector);
  return el ? el.getAttribute(name) : null;
}"""

ANCHORS = """(selector) => Array.from(document.querySelectorAll(selector)).map((a) => ({
  text: (a.innerText || a.textContent || '').trim(),
  href: a.getAttribute('href'),
}))"""

INJECT_FILE_FROM_URL = """async (selector, url, filename, mimeType) => {
  const input = document.querySelector(selector);
  if (!input) throw new Error('Element not found: ' + selector);
  const response = await fetch(url);
  if (!response.ok) throw new Error('Video fetch failed: ' + response.status);
  const blob = await response.blob();
  const file = new File([blob], filename, { type: mimeType });
  const transfer = new DataTransfer();
  transfer.items.add(file);
  input.files = transfer.files;
  input.dispatchEvent(new Event('input', { bubbles: true }));
  input.dispatchEvent(new Event('change', { bubbles: true }));
  return { name: file.name, size: file.size };
}"""

COLLECT_SESSION_ROWS = """(rowSelector, linkSelector, limit) => {
  const clip = (s, n) => (s || '').trim().substring(0, n);
  const links = Array.from(document.querySelectorAll(linkSelector)).slice(0, limit).map((a) => ({
    href: a.getAttribute('href'),
    text: clip(a.textContent, 100),
  }));
  const rows = [];
  for (const row of document.querySelectorAll(rowSelector)) {
    const link = row.querySelector(linkSelector);
    rows.push({
      text: (row.textContent || '').trim(),
      href: link ? link.getAttribute('href') : null,
    });
    if (rows.length >= limit * 4) break;
  }
  return {
    title: document.title,
    url: window.location.href,
    bodySnippet: clip(document.body?.innerText, 800),
    sessionLinks: links,
    rows,
  };
}"""
