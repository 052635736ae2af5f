"""Dashboard HTML with inline CSS and vanilla JS."""


def get_dashboard_html() -> str:
    return """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Task Dashboard</title>
<style>
  :root {
    --bg: #0d1117; --surface: #161b22; --border: #30363d;
    --text: #e6edf3; --text-muted: #8b949e; --text-dim: #6e7681;
    --pending: #d29922; --planning: #e3b341; --ready: #3fb950; --queued: #8b949e;
    --in-progress: #58a6ff; --reviewing: #f0883e; --pull-request: #db61a2;
    --done: #3fb950; --failure: #f85149; --accent: #58a6ff;
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 1100px; margin: 0 auto; padding: 24px 16px; }

  /* Header */
  header { display: flex; justify-content: space-between; align-items: center;
           padding-bottom: 16px; border-bottom: 1px solid var(--border); margin-bottom: 24px; }
  header h1 { font-size: 20px; font-weight: 600; }
  button { background: var(--surface); color: var(--text-muted); border: 1px solid var(--border);
           padding: 4px 10px; border-radius: 4px; cursor: pointer; font-size: 12px; }
  button:hover { color: var(--text); border-color: var(--text-muted); }
  button:disabled { cursor: wait; opacity: 0.6; }

  /* Error banner */
  .error { display: flex; justify-content: space-between; align-items: center; gap: 12px;
           background: rgba(248,81,73,0.1); border: 1px solid var(--failure); color: var(--failure);
           border-radius: 8px; padding: 10px 14px; margin-bottom: 16px; font-size: 13px; }

  /* Task table */
  table { width: 100%; border-collapse: collapse; font-size: 13px; }
  th { text-align: left; color: var(--text-muted); font-weight: 600; padding: 8px;
       border-bottom: 1px solid var(--border); }
  td { padding: 8px; border-bottom: 1px solid var(--border); vertical-align: top; }
  tr.subtask td { background: rgba(110,118,129,0.08); }
  tr.subtask td:first-child { padding-left: 36px; }
  .task-id { font-family: monospace; font-weight: 600; cursor: pointer; }
  .toggle { width: 22px; padding: 0; margin-right: 6px; }
  .title { font-weight: 600; }
  .muted { color: var(--text-muted); font-size: 12px; }
  .actions { display: flex; gap: 4px; flex-wrap: wrap; }
  .badge { display: inline-block; padding: 2px 10px; border-radius: 12px; font-size: 11px;
           font-weight: 600; text-transform: uppercase; letter-spacing: 0.5px;
           background: rgba(139,148,158,0.15); color: var(--queued); }
  .badge.PENDING { color: var(--pending); } .badge.PLANNING { color: var(--planning); }
  .badge.READY { color: var(--ready); } .badge.IN_PROGRESS { color: var(--in-progress); }
  .badge.REVIEWING { color: var(--reviewing); } .badge.PULL_REQUEST { color: var(--pull-request); }
  .badge.DONE { color: var(--done); } .badge.FAILURE { color: var(--failure); }

  /* Modal */
  .backdrop { position: fixed; inset: 0; background: rgba(0,0,0,0.6); display: flex;
              align-items: center; justify-content: center; }
  .modal { background: var(--surface); border: 1px solid var(--border); border-radius: 8px;
           padding: 20px; width: 640px; max-height: 80vh; overflow-y: auto; }
  .modal h2 { font-size: 16px; margin-bottom: 12px; }
  .modal label { display: block; font-size: 12px; color: var(--text-muted); margin-top: 10px; }
  .modal input, .modal textarea, .modal select { width: 100%; background: var(--bg); color: var(--text);
           border: 1px solid var(--border); border-radius: 4px; padding: 6px 8px; font-size: 13px; }
  .modal textarea { min-height: 70px; font-family: inherit; }
  .modal pre { background: var(--bg); padding: 8px; border-radius: 4px; white-space: pre-wrap;
               font-size: 12px; }
  .modal-footer { display: flex; justify-content: flex-end; gap: 8px; margin-top: 16px; }

  .empty { text-align: center; padding: 48px; color: var(--text-muted); }
  .refresh-bar { display: flex; justify-content: space-between; align-items: center;
                 margin-bottom: 16px; font-size: 12px; color: var(--text-dim); }
</style>
</head>
<body>
<div class="container">
  <header>
    <h1>Task Dashboard</h1>
    <div>
      <button onclick="post('/api/modal/jira')">Import from Jira</button>
      <button onclick="post('/api/modal/new')">New Task</button>
    </div>
  </header>
  <div id="error"></div>
  <div class="refresh-bar">
    <span id="loaded">Loading...</span>
    <button onclick="post('/api/reload')">Refresh</button>
  </div>
  <div id="content"></div>
  <div id="modal"></div>
</div>

<script>
const POLL_MS = 5000;
const ACTIONS = [['plan', 'Plan'], ['develop', 'Develop'], ['auto-develop', 'Auto']];
const STATUSES = ['PENDING', 'PLANNING', 'READY', 'QUEUED', 'IN_PROGRESS', 'REVIEWING',
                  'PULL_REQUEST', 'DONE', 'FAILURE'];
let state = null;
let modalKey = null;

async function post(path, body) {
  const res = await fetch(path, {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify(body || {}),
  });
  const data = await res.json();
  if (!res.ok) { alert(data.error || 'Request failed'); return; }
  render(data);
}

async function poll() {
  const res = await fetch('/api/state');
  if (res.ok) render(await res.json());
}

function render(data) {
  state = data;
  document.getElementById('error').innerHTML = data.error
    ? `<div class="error"><span>${esc(data.error)}</span>
       <button onclick="post('/api/error/dismiss')">Dismiss</button></div>` : '';
  document.getElementById('loaded').textContent =
    `${data.tasks.length} tasks` + (data.last_loaded_at ? ` · updated ${data.last_loaded_at}` : '');
  renderTasks(data);
  renderModal(data.modal);
}

function renderTasks(data) {
  const content = document.getElementById('content');
  if (data.tasks.length === 0) {
    content.innerHTML = '<div class="empty"><h3>No tasks yet</h3><p>Create one or import from Jira.</p></div>';
    return;
  }
  let html = `<table><thead><tr><th>ID</th><th>Summary</th><th>Status</th><th>Type</th>
    <th>Branch</th><th>Actions</th></tr></thead><tbody>`;
  for (const task of data.tasks) {
    html += renderRow(task, false, data.action_loading_key);
    if (task.expanded) {
      for (const sub of task.subtasks) html += renderRow(sub, true, data.action_loading_key);
    }
  }
  html += '</tbody></table>';
  content.innerHTML = html;
}

function renderRow(task, isSubtask, loadingKey) {
  const ident = task.sub_task_id || task.task_id;
  let toggle = '';
  if (!isSubtask && task.subtasks.length > 0) {
    toggle = `<button class="toggle" onclick="post('/api/expand/${encodeURIComponent(task.key)}')">
      ${task.expanded ? '&#9662;' : '&#9656;'}</button>`;
  }
  const title = task.summary || task.description || 'Untitled task';
  const detail = task.summary && task.description ? `<div class="muted">${esc(trunc(task.description))}</div>` : '';
  let actions = '';
  if (!isSubtask) {
    actions += `<button title="Add Subtask" onclick='post("/api/modal/subtask", ${attr({task_id: task.task_id})})'>+</button>`;
  }
  actions += `<button onclick='post("/api/modal/edit", ${attr({id: ident})})'>Edit</button>`;
  for (const [action, label] of ACTIONS) {
    const loading = loadingKey === `${ident}-${action}`;
    actions += `<button ${loading ? 'disabled' : ''}
      onclick='post("/api/actions/${action}", ${attr({id: ident})})'>${loading ? '...' : label}</button>`;
  }
  return `<tr class="${isSubtask ? 'subtask' : ''}">
    <td>${toggle}<span class="task-id" ondblclick='post("/api/modal/view", ${attr({id: ident})})'>${esc(ident)}</span></td>
    <td><div class="title">${esc(trunc(title))}</div>${detail}</td>
    <td><span class="badge ${esc(task.status)}">${esc((task.status || '').replace('_', ' '))}</span></td>
    <td class="muted">${esc(task.task_type)}</td>
    <td class="muted">${esc(task.base_branch || '-')}</td>
    <td><div class="actions">${actions}</div></td>
  </tr>`;
}

function renderModal(modal) {
  const el = document.getElementById('modal');
  if (!modal.mode) { el.innerHTML = ''; modalKey = null; return; }
  // Keep what the user is typing while polls re-render the page.
  const key = modal.mode + ':' + JSON.stringify(modal.viewing || modal.parent_task_id || '');
  if (key === modalKey) return;
  modalKey = key;
  el.innerHTML = modal.mode === 'view' ? renderView(modal.viewing) : renderForm(modal);
}

function renderView(task) {
  const ident = task.sub_task_id || task.task_id;
  const back = task.sub_task_id ? `<button onclick="post('/api/modal/parent')">&larr; Parent</button> ` : '';
  const field = (label, value) => value ? `<label>${label}</label><pre>${esc(value)}</pre>` : '';
  const attachments = (task.attachment_path || []).map(a => `${a.filename} (${a.path})`).join('\\n');
  return `<div class="backdrop"><div class="modal">
    <h2>${back}${task.sub_task_id ? 'Subtask' : 'Task'} Details: ${esc(ident)}</h2>
    <span class="badge ${esc(task.status)}">${esc(task.status)}</span>
    <span class="muted">${esc(task.task_type)}</span>
    ${field('Summary', task.summary)}${field('Description', task.description)}
    ${field('Repository', task.repo_url)}${field('Base branch', task.base_branch)}
    ${field('Prompt', task.prompt)}${field('Agent summary', task.agent_summary)}
    ${field('Attachments', attachments)}
    ${task.additional_json ? field('Additional JSON', JSON.stringify(task.additional_json, null, 2)) : ''}
    <div class="modal-footer">
      <button onclick='post("/api/modal/edit", ${attr({id: ident})})'>Edit</button>
      <button onclick="post('/api/modal/close')">Close</button>
    </div></div></div>`;
}

function renderForm(modal) {
  const d = modal.editing || {};
  const titles = {new: 'New Task', subtask: 'New Subtask', edit: 'Edit Task', jira: 'Import from Jira'};
  const input = (name, label, value) =>
    `<label>${label}</label><input name="${name}" value="${esc(value || '')}">`;
  const area = (name, label, value) =>
    `<label>${label}</label><textarea name="${name}">${esc(value || '')}</textarea>`;
  let body;
  if (modal.mode === 'jira') {
    body = input('jira_task_id', 'Jira issue key', d.jira_task_id)
         + input('repo_url', 'Repository URL', d.repo_url)
         + input('base_branch', 'Branch', d.base_branch);
  } else {
    const locked = modal.mode === 'edit' ? 'disabled' : '';
    const options = STATUSES.map(s => `<option ${s === d.status ? 'selected' : ''}>${s}</option>`).join('');
    body = `<label>Task ID</label><input name="task_id" value="${esc(d.task_id || '')}" ${locked || (modal.mode === 'subtask' ? 'disabled' : '')}>`
         + (modal.mode === 'subtask' || d.sub_task_id
              ? `<label>Subtask ID</label><input name="sub_task_id" value="${esc(d.sub_task_id || '')}" ${locked}>` : '')
         + input('summary', 'Summary', d.summary)
         + area('description', 'Description', d.description)
         + input('repo_url', 'Repository URL', d.repo_url)
         + input('base_branch', 'Base branch', d.base_branch)
         + `<label>Status</label><select name="status">${options}</select>`
         + area('prompt', 'Prompt', d.prompt)
         + area('agent_summary', 'Agent summary', d.agent_summary);
  }
  const submit = modal.mode === 'jira' ? 'Import Task' : modal.mode === 'edit' ? 'Save Changes' : 'Create';
  return `<div class="backdrop"><div class="modal"><h2>${titles[modal.mode]}</h2>
    <form id="task-form" onsubmit="event.preventDefault(); save();">${body}
    <div class="modal-footer">
      <button type="button" onclick="post('/api/modal/close')">Cancel</button>
      <button type="submit">${submit}</button>
    </div></form></div></div>`;
}

function save() {
  const changes = {};
  for (const el of document.getElementById('task-form').elements) {
    if (el.name && !el.disabled) changes[el.name] = el.value;
  }
  modalKey = null;
  post('/api/modal/save', changes);
}

function trunc(s) { return s && s.length > 120 ? s.slice(0, 117) + '...' : s; }
function attr(obj) { return esc(JSON.stringify(obj)).replace(/'/g, '&#39;'); }

function esc(s) {
  if (s === null || s === undefined) return '';
  const d = document.createElement('div');
  d.textContent = String(s);
  return d.innerHTML;
}

poll();
setInterval(poll, POLL_MS);
</script>
</body>
</html>"""
