"""Browser-side scripts evaluated in every captured frame."""

# DOM attribute carrying the capture key of every element that made it into a snapshot
NODE_KEY_ATTRIBUTE = "data-snapshot-key"

# Walks one frame's document and returns {url, nodes}. Every emitted element is
# tagged with NODE_KEY_ATTRIBUTE. Nested frames are not entered: they are
# captured separately and stitched in by the allocator.
ACCESSIBILITY_SCRIPT = """
({ captureId, attribute }) => {
    let counter = 0;

    const SKIPPED_TAGS = new Set([
        'SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE', 'HEAD', 'META', 'LINK', 'TITLE',
    ]);
    const NAME_FROM_CONTENT = new Set([
        'button', 'cell', 'checkbox', 'columnheader', 'gridcell', 'heading', 'link',
        'menuitem', 'menuitemcheckbox', 'menuitemradio', 'option', 'radio', 'row',
        'rowheader', 'switch', 'tab', 'tooltip', 'treeitem',
    ]);
    const TRANSPARENT_ROLES = new Set(['generic', 'none', 'presentation']);
    const CHECKABLE_ROLES = new Set([
        'checkbox', 'radio', 'switch', 'menuitemcheckbox', 'menuitemradio',
    ]);
    const SELECTABLE_ROLES = new Set(['tab', 'row', 'gridcell', 'treeitem']);
    const VALUE_ROLES = new Set(['textbox', 'searchbox', 'spinbutton', 'combobox']);

    const normalize = (text) => (text || '')
        .replace(/[\\u200b\\u00ad]/g, '')
        .replace(/\\s+/g, ' ')
        .trim();

    function isHidden(el) {
        if (el.hidden || el.getAttribute('aria-hidden') === 'true')
            return true;
        return window.getComputedStyle(el).display === 'none';
    }

    function inputRole(el) {
        const type = (el.getAttribute('type') || 'text').toLowerCase();
        switch (type) {
            case 'button': case 'submit': case 'reset': case 'image': return 'button';
            case 'checkbox': return 'checkbox';
            case 'radio': return 'radio';
            case 'range': return 'slider';
            case 'number': return 'spinbutton';
            case 'hidden': return null;
            case 'search': return el.hasAttribute('list') ? 'combobox' : 'searchbox';
            default: return el.hasAttribute('list') ? 'combobox' : 'textbox';
        }
    }

    function implicitRole(el) {
        switch (el.tagName) {
            case 'A': case 'AREA': return el.hasAttribute('href') ? 'link' : null;
            case 'ARTICLE': return 'article';
            case 'ASIDE': return 'complementary';
            case 'BUTTON': return 'button';
            case 'DETAILS': return 'group';
            case 'DIALOG': return 'dialog';
            case 'FIELDSET': return 'group';
            case 'FOOTER': return 'contentinfo';
            case 'FORM': return 'form';
            case 'H1': case 'H2': case 'H3': case 'H4': case 'H5': case 'H6': return 'heading';
            case 'HEADER': return 'banner';
            case 'HR': return 'separator';
            case 'FRAME': case 'IFRAME': return 'iframe';
            case 'IMG': return el.getAttribute('alt') === '' ? null : 'img';
            case 'INPUT': return inputRole(el);
            case 'LI': return 'listitem';
            case 'MAIN': return 'main';
            case 'NAV': return 'navigation';
            case 'OL': case 'UL': return 'list';
            case 'OPTION': return 'option';
            case 'P': return 'paragraph';
            case 'PROGRESS': return 'progressbar';
            case 'SECTION':
                return el.hasAttribute('aria-label') || el.hasAttribute('aria-labelledby') ? 'region' : null;
            case 'SELECT': return el.multiple || el.size > 1 ? 'listbox' : 'combobox';
            case 'TABLE': return 'table';
            case 'TBODY': case 'THEAD': case 'TFOOT': return 'rowgroup';
            case 'TD': return 'cell';
            case 'TEXTAREA': return 'textbox';
            case 'TH': return 'columnheader';
            case 'TR': return 'row';
        }
        return null;
    }

    function roleOf(el) {
        const explicit = (el.getAttribute('role') || '').trim().split(/\\s+/)[0];
        const role = explicit || implicitRole(el);
        if (!role || TRANSPARENT_ROLES.has(role))
            return null;
        return role;
    }

    function childNodesOf(node) {
        if (node.shadowRoot)
            return Array.from(node.shadowRoot.childNodes);
        if (node.tagName === 'SLOT') {
            const assigned = node.assignedNodes();
            if (assigned.length)
                return assigned;
        }
        return Array.from(node.childNodes);
    }

    function textOf(node) {
        if (node.nodeType === Node.TEXT_NODE)
            return node.nodeValue || '';
        if (node.nodeType !== Node.ELEMENT_NODE || SKIPPED_TAGS.has(node.tagName) || isHidden(node))
            return '';
        return childNodesOf(node).map(textOf).join('');
    }

    function labelledByText(el) {
        const ids = (el.getAttribute('aria-labelledby') || '').split(/\\s+/).filter(Boolean);
        return normalize(ids.map((id) => {
            const target = el.ownerDocument.getElementById(id);
            return target ? target.textContent : '';
        }).join(' '));
    }

    function accessibleName(el, role) {
        const label = normalize(el.getAttribute('aria-label'));
        if (label)
            return label;
        const labelledBy = labelledByText(el);
        if (labelledBy)
            return labelledBy;

        const tag = el.tagName;
        if (tag === 'INPUT' && ['button', 'submit', 'reset'].includes(el.type)) {
            const value = normalize(el.value);
            if (value)
                return value;
            if (el.type === 'submit')
                return 'Submit';
            if (el.type === 'reset')
                return 'Reset';
        }
        if (tag === 'IMG' || (tag === 'INPUT' && el.type === 'image')) {
            const alt = normalize(el.getAttribute('alt'));
            if (alt)
                return alt;
        }
        if (tag === 'INPUT' || tag === 'TEXTAREA' || tag === 'SELECT') {
            if (el.labels && el.labels.length)
                return normalize(Array.from(el.labels).map((l) => l.textContent).join(' '));
            const fallback = normalize(el.getAttribute('title')) || normalize(el.getAttribute('placeholder'));
            return fallback;
        }
        if (NAME_FROM_CONTENT.has(role)) {
            const content = normalize(textOf(el));
            if (content)
                return content;
        }
        return normalize(el.getAttribute('title'));
    }

    function addStates(el, role, item) {
        if (CHECKABLE_ROLES.has(role)) {
            const aria = el.getAttribute('aria-checked');
            if (aria === 'mixed')
                item.checked = 'mixed';
            else if (aria === 'true' || aria === 'false')
                item.checked = aria === 'true';
            else if (el.tagName === 'INPUT')
                item.checked = el.indeterminate ? 'mixed' : el.checked;
        }
        if (role === 'option') {
            const aria = el.getAttribute('aria-selected');
            item.selected = aria !== null ? aria === 'true' : !!el.selected;
        } else if (SELECTABLE_ROLES.has(role) && el.hasAttribute('aria-selected')) {
            item.selected = el.getAttribute('aria-selected') === 'true';
        }
        if (el.hasAttribute('aria-expanded'))
            item.expanded = el.getAttribute('aria-expanded') === 'true';
        else if (el.tagName === 'DETAILS')
            item.expanded = el.open;
        if (el.hasAttribute('aria-pressed')) {
            const pressed = el.getAttribute('aria-pressed');
            item.pressed = pressed === 'mixed' ? 'mixed' : pressed === 'true';
        }
        if (el.disabled === true || el.getAttribute('aria-disabled') === 'true')
            item.disabled = true;
        if (role === 'heading') {
            const ariaLevel = parseInt(el.getAttribute('aria-level') || '', 10);
            const match = /^H([1-6])$/.exec(el.tagName);
            item.level = !isNaN(ariaLevel) ? ariaLevel : (match ? parseInt(match[1], 10) : 2);
        }
    }

    // Adjacent text runs are merged, then normalized once the parent is complete.
    function pushText(out, text) {
        if (out.length && typeof out[out.length - 1] === 'string')
            out[out.length - 1] += text;
        else
            out.push(text);
    }

    function finalize(children) {
        const result = [];
        for (const child of children) {
            if (typeof child !== 'string') {
                result.push(child);
                continue;
            }
            const text = normalize(child);
            if (text)
                result.push(text);
        }
        return result;
    }

    function visitChildren(node, out) {
        for (const child of childNodesOf(node))
            visit(child, out);
    }

    function visit(node, out) {
        if (node.nodeType === Node.TEXT_NODE) {
            pushText(out, node.nodeValue || '');
            return;
        }
        if (node.nodeType !== Node.ELEMENT_NODE)
            return;

        const el = node;
        if (SKIPPED_TAGS.has(el.tagName) || isHidden(el))
            return;

        const style = window.getComputedStyle(el);
        const role = style.visibility === 'visible' ? roleOf(el) : null;
        if (!role) {
            const block = !style.display.startsWith('inline');
            if (block)
                pushText(out, ' ');
            visitChildren(el, out);
            if (block)
                pushText(out, ' ');
            return;
        }

        const item = { role, name: accessibleName(el, role), key: `${captureId}-${++counter}`, children: [] };
        el.setAttribute(attribute, item.key);
        addStates(el, role, item);

        if (VALUE_ROLES.has(role) && (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA')) {
            if (el.value)
                item.children.push(el.value);
        } else if (role !== 'iframe') {
            visitChildren(el, item.children);
        }

        item.children = finalize(item.children);
        if (item.children.length === 1 && item.children[0] === item.name)
            item.children = [];
        out.push(item);
    }

    const root = document.body || document.documentElement;
    const nodes = [];
    if (root)
        visitChildren(root, nodes);
    return { url: document.location.href, nodes: finalize(nodes) };
}
"""
