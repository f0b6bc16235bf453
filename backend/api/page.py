"""HTML rendering of the browser report.

The page is a single table (one row per page type) plus a small script that
drives the ``/check`` SSE endpoint and the per-link recheck endpoints.  All
checking happens server-side; the script only updates badges.
"""

from __future__ import annotations

import json
from html import escape
from typing import List

from backend.audit import Audit
from backend.inventory.models import PageTypeRow, SamplePage

_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 1400px; margin: 0 auto; padding: 20px; background: #f5f7fa; }
.ptl-header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 20px; padding-bottom: 16px; border-bottom: 2px solid #e9ecef; }
h1 { color: #212529; font-size: 22px; margin: 0 0 8px 0; }
p.ptl-desc { color: #6c757d; margin: 0; font-size: 13px; }
#ptl-summary { font-size: 18px; font-weight: 600; padding: 8px 16px; border-radius: 6px; background: #f8f9fa; }
.ptl-toolbar { margin-bottom: 20px; display: flex; gap: 12px; flex-wrap: wrap; align-items: center; }
.ptl-btn { padding: 10px 16px; cursor: pointer; border: 1px solid #ccc; border-radius: 6px; font-size: 13px; background: #fff; }
.ptl-btn-primary { background: #0071bc; color: #fff; border: none; font-weight: 600; }
.ptl-btn-secondary { background: #5a9bd4; color: #fff; border: none; font-weight: 600; }
.ptl-btn:disabled { background: #6c757d; cursor: wait; }
.ptl-table { width: 100%; border-collapse: collapse; background: #fff; font-size: 14px; }
.ptl-table th { background: #343a40; color: #fff; padding: 12px 16px; text-align: left; }
.ptl-table td { padding: 14px 16px; border-bottom: 1px solid #e9ecef; vertical-align: middle; }
.ptl-type, .ptl-url, .ptl-action { font-family: 'SF Mono', Monaco, 'Courier New', monospace; }
.ptl-url { color: #adb5bd; font-size: 12px; display: block; margin-top: 4px; }
.ptl-count-draft { color: #adb5bd; }
.ptl-empty { color: #6c757d; font-style: italic; }
.ptl-status-placeholder, .ptl-status-badge { padding: 3px 6px; border-radius: 4px; font-size: 12px; display: inline-block; min-width: 46px; text-align: center; }
.ptl-status-placeholder { background: #e9ecef; color: #adb5bd; }
.ptl-status-badge { cursor: pointer; }
.ptl-badge-pass { background: #28a745; color: #fff; }
.ptl-badge-redirect { background: #ffc107; color: #000; }
.ptl-badge-fail { background: #dc3545; color: #fff; }
.ptl-check-badge, .ptl-form-badge, .ptl-action-note { margin-left: 6px; padding: 3px 8px; border-radius: 4px; background: #fff3cd; color: #856404; font-size: 12px; }
.ptl-btn-actions { padding: 3px 8px; font-size: 12px; cursor: pointer; border: none; border-radius: 4px; background: #f0ad4e; color: #fff; }
.ptl-actions-container { display: grid; grid-template-columns: auto auto; gap: 4px 6px; margin-top: 8px; justify-content: start; }
.ptl-preview-col { display: none; }
.ptl-previews-visible .ptl-preview-col { display: table-cell; }
.ptl-preview { width: 200px; height: 150px; overflow: hidden; border: 1px solid #dee2e6; }
.ptl-preview iframe { width: 1200px; height: 900px; transform: scale(0.167); transform-origin: top left; border: none; pointer-events: none; }
.ptl-help { margin-top: 24px; padding: 20px 24px; background: #fff; border: 1px solid #dee2e6; border-radius: 8px; font-size: 13px; display: flex; gap: 40px; }
"""

_HELP = """
<div class='ptl-help'>
  <div>
    <strong>What it checks:</strong>
    <ul>
      <li><strong>CMS Edit Form</strong> – the page's CMS edit URL returns HTTP 200</li>
      <li><strong>Frontend</strong> – the page's URL returns HTTP 200 (404/500 for ErrorPages, 3xx for RedirectorPages)</li>
      <li><strong>Actions</strong> – declared controller actions are looked up in the page HTML and their URLs checked</li>
      <li><strong>Forms</strong> – <code>&lt;form&gt;</code> tags in the main content (header/footer excluded) are flagged</li>
    </ul>
  </div>
  <div>
    <strong>What it does NOT check:</strong>
    <ul>
      <li>Form submissions or validation</li>
      <li>JavaScript functionality or errors</li>
      <li>Visual rendering or layout issues</li>
      <li>Broken links within page content</li>
      <li>Database integrity or data accuracy</li>
      <li>Performance or page load times</li>
    </ul>
  </div>
</div>
"""

_SCRIPT = """
var checking = false;

function openAll(links) { links.forEach(function(url) { window.open(url, '_blank'); }); }

function togglePreviews() {
  var table = document.querySelector('.ptl-table');
  table.classList.toggle('ptl-previews-visible');
  var visible = table.classList.contains('ptl-previews-visible');
  document.getElementById('preview-btn').textContent = visible ? 'Hide Previews' : 'Show Previews';
  if (visible) {
    document.querySelectorAll('.ptl-preview iframe[data-src]').forEach(function(f) {
      if (!f.src) { f.src = f.dataset.src; }
    });
  }
}

function badge(result, kind, index) {
  if (!result) { return "<span class='ptl-status-placeholder'>?</span>"; }
  var cls = result.passed ? 'ptl-badge-pass'
    : (typeof result.status === 'number' && result.status >= 300 && result.status < 400 ? 'ptl-badge-redirect' : 'ptl-badge-fail');
  var click = kind ? " onclick=\\"recheck('" + kind + "', " + index + ")\\"" : '';
  var mark = result.passed ? ' \\u2713' : ' \\u2717';
  var title = result.approximated ? 'Approximated redirect status' : 'Click to recheck';
  return "<span class='ptl-status-badge " + cls + "'" + click + " title='" + title + "'>" + result.status + mark + "</span>";
}

function renderRow(row) {
  var i = row.index;
  document.getElementById('cms-status-' + i).innerHTML = badge(row.cms_result, 'cms', i);
  document.getElementById('frontend-status-' + i).innerHTML = badge(row.frontend_result, 'frontend', i);
  var form = document.getElementById('form-indicator-' + i);
  if (form) {
    form.innerHTML = row.form_detected ? "<span class='ptl-form-badge' title='A form was detected on this page. Check it manually.'>form</span>" : '';
  }
  var container = document.getElementById('actions-container-' + i);
  if (!container || Object.keys(row.action_urls).length === 0) { return; }
  var html = '';
  Object.keys(row.action_urls).forEach(function(action) {
    var url = row.action_urls[action];
    if (url) {
      html += "<span class='ptl-status'>" + badge(row.action_results[action]) + "</span>"
        + "<a class='ptl-action' target='_blank' href='" + url + "' title='" + url + "'>/" + action + "</a>";
    } else {
      html += "<span class='ptl-check-badge' title='No link found on page for this action. Verify it manually.'>check</span>"
        + "<span class='ptl-action'>/" + action + "</span>";
    }
  });
  container.innerHTML = html;
}

function showActionButtons() {
  document.querySelectorAll('[data-actions]').forEach(function(container) {
    var actions = JSON.parse(container.dataset.actions);
    var i = container.dataset.index;
    var label = actions.length === 1 ? actions[0] : actions.length + ' actions';
    container.innerHTML = "<button class='ptl-btn-actions' title='Detect and test: " + actions.join(', ')
      + "' onclick='checkRowActions(" + i + ")'>" + label + "</button>";
  });
}

async function recheck(kind, index) {
  var span = document.getElementById(kind + '-status-' + index);
  span.innerHTML = "<span class='ptl-status-placeholder'>...</span>";
  var response = await fetch('recheck/' + kind + '/' + index, { method: 'POST' });
  span.innerHTML = badge(await response.json(), kind, index);
}

async function checkRowActions(index) {
  var container = document.getElementById('actions-container-' + index);
  container.innerHTML = "<span class='ptl-status-placeholder'>...</span>";
  var response = await fetch('rows/' + index + '/actions', { method: 'POST' });
  var payload = await response.json();
  if (!payload.fetched) {
    container.innerHTML = "<span class='ptl-status-badge ptl-badge-fail'>error</span>";
    return;
  }
  renderRow(payload.row);
}

function setSummary(text, background) {
  var summary = document.getElementById('ptl-summary');
  summary.textContent = text;
  summary.style.background = background;
}

async function checkAllLinks(includeActions) {
  var button = document.getElementById(includeActions ? 'check-actions-btn' : 'check-btn');
  var other = document.getElementById(includeActions ? 'check-btn' : 'check-actions-btn');
  if (checking) {
    await fetch('check/cancel', { method: 'POST' });
    return;
  }
  checking = true;
  var label = button.textContent;
  other.disabled = true;
  setSummary('', '#f8f9fa');
  if (!includeActions) { showActionButtons(); }

  var response = await fetch('check?actions=' + includeActions, { method: 'POST' });
  var reader = response.body.getReader();
  var decoder = new TextDecoder();
  var buffer = '';
  while (true) {
    var chunk = await reader.read();
    if (chunk.done) { break; }
    buffer += decoder.decode(chunk.value, { stream: true });
    var frames = buffer.split('\\n\\n');
    buffer = frames.pop();
    frames.forEach(function(frame) {
      if (frame.indexOf('data: ') !== 0) { return; }
      var event = JSON.parse(frame.slice(6));
      if (event.event === 'progress') {
        button.textContent = 'Checking ' + event.checked + '/' + event.total + '... (click to stop)';
      } else if (event.event === 'row') {
        renderRow(event.row);
      } else if (event.event === 'done') {
        var s = event.summary;
        setSummary(s.message, s.cancelled ? '#fff3cd' : (s.failed === 0 ? '#d4edda' : '#f8d7da'));
      } else if (event.event === 'error') {
        setSummary(event.detail, '#f8d7da');
      }
    });
  }
  checking = false;
  other.disabled = false;
  button.textContent = label;
}
"""


def _json_for_script(value: object) -> str:
    return json.dumps(value).replace("</", "<\\/")


def _count_cell(row: PageTypeRow) -> str:
    draft = ""
    if row.draft_only_count > 0:
        draft = f" <span class='ptl-count-draft'>+ {row.draft_only_count}</span>"
    return f"<td><span class='ptl-count' title='Live pages + Draft-only pages'>{row.live_count}{draft}</span></td>"


def _checked_row(row: PageTypeRow, sample: SamplePage, index: int) -> str:
    cms = escape(sample.cms_url, quote=True)
    frontend = escape(sample.frontend_url, quote=True)
    actions = ""
    if row.action_names:
        data = escape(json.dumps(list(row.action_names)), quote=True)
        actions = (
            f"<span id='actions-container-{index}' class='ptl-actions-container' "
            f"data-index='{index}' data-actions='{data}'></span>"
        )
    return (
        "<tr>"
        f"<td class='ptl-preview-col'><div class='ptl-preview'><iframe data-src='{frontend}'></iframe></div></td>"
        f"<td><span class='ptl-type'>{escape(row.short_name)}</span></td>"
        f"{_count_cell(row)}"
        f"<td><span id='cms-status-{index}' class='ptl-status'><span class='ptl-status-placeholder'>?</span></span> "
        f"<a href='{cms}' target='_blank'>Edit in CMS</a></td>"
        f"<td><span id='frontend-status-{index}' class='ptl-status'><span class='ptl-status-placeholder'>?</span></span> "
        f"<a href='{frontend}' target='_blank'>View Page</a><span id='form-indicator-{index}'></span>{actions}</td>"
        f"<td><span class='ptl-title'>{escape(sample.title)}</span>"
        f"<span class='ptl-url'>{escape(sample.url_path)}</span></td>"
        "</tr>"
    )


def _empty_row(row: PageTypeRow) -> str:
    note = ""
    if row.action_names:
        note = f"<div class='ptl-action-note'>Has actions: {escape(', '.join(row.action_names))}</div>"
    return (
        "<tr>"
        "<td class='ptl-preview-col'>No preview</td>"
        f"<td><span class='ptl-type'>{escape(row.short_name)}</span></td>"
        "<td><span class='ptl-count'>0</span></td>"
        f"<td colspan='3' style='text-align:center;'><span class='ptl-empty'>—</span>{note}</td>"
        "</tr>"
    )


def render_page(audit: Audit) -> str:
    """Return the full HTML document for *audit*."""
    rows: List[str] = []
    for position, row in enumerate(audit.rows):
        index = audit.check_index.get(position)
        if index is None or row.sample is None:
            rows.append(_empty_row(row))
        else:
            rows.append(_checked_row(row, row.sample, index))

    cms_links = _json_for_script([p.cms_url for p in audit.runner.pairs])
    frontend_links = _json_for_script([p.frontend_url for p in audit.runner.pairs])
    count = audit.checkable_count
    randomise = (
        "<a class='ptl-btn' href='?randomise=1'>Randomise</a>"
        + ("<a class='ptl-btn' href='?'>Reset</a>" if audit.randomised else "")
    )

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset='utf-8'>
<title>Page Type Tester</title>
<style>{_STYLE}</style>
</head>
<body>
<div class='ptl-header'>
  <div><h1>Page Type Tester</h1>
  <p class='ptl-desc'>Checks the HTTP status of the frontend and CMS edit form for each page type.</p></div>
  <span id='ptl-summary'></span>
</div>
<div class='ptl-toolbar'>
  <button id='check-actions-btn' class='ptl-btn ptl-btn-primary' onclick='checkAllLinks(true)'>Check Links &amp; Actions</button>
  <button id='check-btn' class='ptl-btn ptl-btn-secondary' onclick='checkAllLinks(false)'>Check Links Only</button>
  <button class='ptl-btn' onclick='openAll(cmsLinks)' title='Opens {count} CMS tabs'>Open All CMS ({count})</button>
  <button class='ptl-btn' onclick='openAll(frontendLinks)' title='Opens {count} frontend tabs'>Open All Frontend ({count})</button>
  <button id='preview-btn' class='ptl-btn' onclick='togglePreviews()'>Show Previews</button>
  {randomise}
</div>
<table class='ptl-table'>
<tr><th class='ptl-preview-col'>Preview</th><th>Page Type</th><th>Count</th><th>CMS Edit Form</th><th>Frontend</th><th>Example Page</th></tr>
{''.join(rows)}
</table>
{_HELP}
<script>
var cmsLinks = {cms_links};
var frontendLinks = {frontend_links};
{_SCRIPT}
</script>
</body>
</html>
"""
