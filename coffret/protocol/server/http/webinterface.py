
INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Coffret - Web Interface</title>
<style>
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f4f5fb; margin: 0; padding: 20px; }
.container { max-width: 1000px; margin: 0 auto; background: #fff; border-radius: 12px; padding: 24px; box-shadow: 0 8px 24px rgba(0,0,0,0.08); }
h1 { margin-top: 0; color: #4a4fb5; }
.toolbar { display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 16px; }
.breadcrumb a { color: #4a4fb5; cursor: pointer; text-decoration: none; }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 8px; border-bottom: 1px solid #eee; }
td.name { cursor: pointer; }
button { background: #4a4fb5; color: #fff; border: none; border-radius: 6px; padding: 6px 12px; cursor: pointer; }
button.danger { background: #c0392b; }
#drop { border: 2px dashed #aab; border-radius: 8px; padding: 16px; text-align: center; color: #778; margin-bottom: 16px; }
#drop.over { background: #eef; }
#status { min-height: 1.2em; color: #555; margin-bottom: 8px; }
</style>
</head>
<body>
<div class="container">
<h1>Coffret</h1>
<div class="breadcrumb" id="breadcrumb"></div>
<div id="status"></div>
<div class="toolbar">
<input type="file" id="fileInput" multiple>
<button onclick="uploadSelected()">Upload</button>
<button onclick="createFolder()">New folder</button>
<button onclick="loadFiles(currentPath)">Refresh</button>
</div>
<div id="drop">Drop files here to upload</div>
<table>
<thead><tr><th>Name</th><th>Size</th><th>Modified</th><th></th></tr></thead>
<tbody id="files"></tbody>
</table>
</div>
<script>
let currentPath = '';

function setStatus(text) { document.getElementById('status').textContent = text; }

function formatSize(size) {
    if (size > 1073741824) return (size / 1073741824).toFixed(1) + ' GB';
    if (size > 1048576) return (size / 1048576).toFixed(1) + ' MB';
    if (size > 1024) return (size / 1024).toFixed(1) + ' KB';
    return size + ' B';
}

function renderBreadcrumb() {
    const el = document.getElementById('breadcrumb');
    el.innerHTML = '';
    const root = document.createElement('a');
    root.textContent = 'Root';
    root.onclick = () => loadFiles('');
    el.appendChild(root);
    let acc = '';
    currentPath.split('/').filter(p => p).forEach(part => {
        acc += '/' + part;
        const target = acc;
        el.appendChild(document.createTextNode(' / '));
        const a = document.createElement('a');
        a.textContent = part;
        a.onclick = () => loadFiles(target);
        el.appendChild(a);
    });
}

function loadFiles(path) {
    currentPath = path || '';
    renderBreadcrumb();
    fetch(`/api/files${currentPath ? '/' + encodeURIComponent(currentPath) : ''}`)
        .then(r => { if (!r.ok) throw new Error(r.statusText); return r.json(); })
        .then(files => {
            const body = document.getElementById('files');
            body.innerHTML = '';
            files.sort((a, b) => (b.isDirectory - a.isDirectory) || a.name.localeCompare(b.name));
            files.forEach(f => {
                const row = document.createElement('tr');
                const name = document.createElement('td');
                name.className = 'name';
                name.textContent = (f.isDirectory ? '[dir] ' : '') + f.name;
                name.onclick = () => f.isDirectory ? loadFiles(f.path) : download(f.path);
                const size = document.createElement('td');
                size.textContent = f.isDirectory ? '' : formatSize(f.size);
                const modified = document.createElement('td');
                modified.textContent = new Date(f.modified).toLocaleString();
                const actions = document.createElement('td');
                const del = document.createElement('button');
                del.className = 'danger';
                del.textContent = 'Delete';
                del.onclick = () => deleteItem(f.path, f.name);
                actions.appendChild(del);
                row.append(name, size, modified, actions);
                body.appendChild(row);
            });
        })
        .catch(e => setStatus('Failed to load files: ' + e.message));
}

function download(path) {
    window.open(`/download/${encodeURIComponent(path)}`, '_blank');
}

function deleteItem(path, name) {
    if (!confirm(`Delete ${name}?`)) return;
    fetch(`/api/delete/${encodeURIComponent(path)}`, { method: 'DELETE' })
        .then(r => r.text().then(t => { setStatus(t); loadFiles(currentPath); }));
}

function uploadFiles(files) {
    if (!files.length) return;
    const form = new FormData();
    form.append('path', currentPath);
    for (const f of files) form.append('file', f);
    setStatus('Uploading...');
    fetch('/api/upload', { method: 'POST', body: form })
        .then(r => r.text().then(t => { setStatus(t); loadFiles(currentPath); }))
        .catch(e => setStatus('Upload failed: ' + e.message));
}

function uploadSelected() { uploadFiles(document.getElementById('fileInput').files); }

function createFolder() {
    const name = prompt('Folder name');
    if (!name) return;
    fetch('/api/mkdir', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ name: name, path: currentPath })
    }).then(r => r.text().then(t => { setStatus(t); loadFiles(currentPath); }));
}

const drop = document.getElementById('drop');
drop.addEventListener('dragover', e => { e.preventDefault(); drop.classList.add('over'); });
drop.addEventListener('dragleave', () => drop.classList.remove('over'));
drop.addEventListener('drop', e => { e.preventDefault(); drop.classList.remove('over'); uploadFiles(e.dataTransfer.files); });

loadFiles('');
</script>
</body>
</html>
""".encode('utf-8')
